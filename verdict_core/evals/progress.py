"""
Progress events emitted while a definition is evaluated.

Callbacks registered on a definition receive a ProgressEvent at the start
and end of the run, of each configuration and of each field. A failing
callback is logged and skipped.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from loguru import logger
from pydantic import BaseModel, Field


class ProgressEventType(str, Enum):
    START = "start"
    CONFIG_START = "config_start"
    EVALUATOR_START = "evaluator_start"
    EVALUATOR_END = "evaluator_end"
    CONFIG_END = "config_end"
    END = "end"


class ProgressEvent(BaseModel):
    """One progress notification."""

    event_type: ProgressEventType
    progress: float = Field(ge=0.0, le=100.0, description="Percent of field evaluations done")
    configuration: str | None = None
    field: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": True}


ProgressCallback = Callable[[ProgressEvent], Any]


class ProgressTracker:
    """
    Counts completed field evaluations and fans events out to callbacks.

    Progress is the share of (configuration x field) evaluations finished.
    """

    def __init__(self, callbacks: list[ProgressCallback], total_configurations: int, total_fields: int):
        self._callbacks = list(callbacks)
        self.total_steps = max(total_configurations * total_fields, 0)
        self.completed_steps = 0

    @property
    def progress(self) -> float:
        if self.total_steps == 0:
            return 100.0
        return round(self.completed_steps / self.total_steps * 100, 2)

    def advance(self) -> None:
        self.completed_steps = min(self.completed_steps + 1, self.total_steps)

    def emit(
        self,
        event_type: ProgressEventType,
        configuration: str | None = None,
        field: str | None = None,
        **data: Any,
    ) -> None:
        if not self._callbacks:
            return

        event = ProgressEvent(
            event_type=event_type,
            progress=self.progress,
            configuration=configuration,
            field=field,
            data=data,
        )
        for callback in self._callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Progress callback failed on {event_type.value}: {e}")
