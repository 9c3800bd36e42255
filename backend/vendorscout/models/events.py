from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    PROGRESS = "progress"
    COMPLETE = "complete"
    ERROR = "error"


class Stage(str, Enum):
    INITIALIZING = "initializing"
    CATEGORY = "category"
    RESEARCHING = "researching"
    EXTRACTING = "extracting"
    DEDUPLICATING = "deduplicating"
    SAVING = "saving"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class ProgressEvent:
    type: EventType
    stage: Stage
    message: str
    progress_percent: int
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.type in (EventType.COMPLETE, EventType.ERROR)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "stage": self.stage.value,
            "message": self.message,
            "progress_percent": self.progress_percent,
            **self.data,
        }

    def format(self) -> str:
        """One newline-delimited JSON record."""
        return json.dumps(self.to_dict(), default=str) + "\n"

    def to_sse(self) -> dict[str, str]:
        return {"event": self.type.value, "data": json.dumps(self.to_dict(), default=str)}
