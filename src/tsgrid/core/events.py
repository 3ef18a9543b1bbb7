from dataclasses import dataclass, field
from typing import Dict, Any

@dataclass
class StageEvent:
    stage: str
    filled: int
    deferred: int
    payload: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {"stage": self.stage, "filled": self.filled, "deferred": self.deferred, **self.payload}
