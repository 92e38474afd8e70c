"""Shared data transfer object helpers."""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Union


@dataclass
class AccessRecordDTO:
    timestamp: datetime
    kind: str
    fields: Dict[str, Union[bool, str]]

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AccessRecordDTO":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            kind=data["kind"],
            fields=dict(data["fields"]),
        )

    def describe(self) -> str:
        tokens = " ".join(f"{k}={str(v).lower() if isinstance(v, bool) else v}" for k, v in self.fields.items())
        return f"[{self.timestamp:%H:%M:%S}] {self.kind} {tokens}"
