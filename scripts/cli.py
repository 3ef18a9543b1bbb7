#!/usr/bin/env python3
"""
Run the hourly imputation pipeline.

Usage:
  python scripts/cli.py run --config configs/pipeline.yaml [--input data/raw/log.csv] [--output outputs/hourly.csv]

Writes a run summary to outputs/last_run.json (or --summary). Exits 3 when
cells remain unresolved.
"""
import argparse
import json
import sys
from pathlib import Path

from tsgrid.core.config import PipelineConfig
from tsgrid.core.errors import TsGridError, UnresolvableGapError
from tsgrid.core.logging import setup_logging
from tsgrid.orchestration.pipeline import ImputationPipeline


def cmd_run(args) -> int:
    cfg = PipelineConfig.from_yaml(args.config)
    if args.input:
        cfg.storage.input_path = args.input
    if args.output:
        cfg.storage.output_path = args.output
    log = setup_logging(args.log_level or cfg.log_level)

    summary_path = Path(args.summary)
    summary_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        result = ImputationPipeline(cfg).run()
    except UnresolvableGapError as e:
        log.error("%s", e)
        if args.unresolved_out:
            e.report.to_csv(args.unresolved_out, index=False)
        return 3
    except TsGridError as e:
        log.error("pipeline failed: %s", e)
        return 2

    summary_path.write_text(json.dumps(result.summary(), ensure_ascii=False, indent=2, default=str), encoding="utf-8")
    log.info("summary written to %s", summary_path)
    if not result.complete:
        if args.unresolved_out:
            result.unresolved.to_csv(args.unresolved_out, index=False)
        return 3
    return 0


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(prog="tsgrid")
    sub = ap.add_subparsers(dest="command", required=True)
    run = sub.add_parser("run", help="deduplicate, grid and impute an observation log")
    run.add_argument("--config", default="configs/pipeline.yaml")
    run.add_argument("--input", default=None, help="override storage.input_path")
    run.add_argument("--output", default=None, help="override storage.output_path")
    run.add_argument("--summary", default="outputs/last_run.json")
    run.add_argument("--unresolved-out", default=None, help="CSV of cells left unresolved")
    run.add_argument("--log-level", default=None)
    args = ap.parse_args(argv)
    if args.command == "run":
        return cmd_run(args)
    return 1


if __name__ == "__main__":
    sys.exit(main())
