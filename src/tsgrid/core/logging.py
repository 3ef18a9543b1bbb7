import logging, sys

DEFAULT_FORMAT = '%(asctime)s %(levelname)s %(name)s - %(message)s'

def setup_logging(level: str = "INFO", fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    lvl = getattr(logging, level.upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(lvl)
    # mlflow is chatty at INFO
    for noisy in ("mlflow", "urllib3"):
        logging.getLogger(noisy).setLevel(max(lvl, logging.WARNING))
    return logging.getLogger("tsgrid")
