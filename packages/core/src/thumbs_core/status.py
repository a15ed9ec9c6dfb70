"""Build status ledger: the ordered record of every verification step in one run.

A step is keyed by name. Insertion order is execution order and is kept
explicitly (dicts preserve it, and re-recording a step replaces the entry in
place rather than moving it). Entries are frozen dataclasses, so a recorded
step can only ever be replaced as a whole.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator

MERGE_STEP = "merge"
CLONE_STEP = "clone"


class StepResult(str, enum.Enum):
    OK = "ok"
    ERROR = "error"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StepStatus:
    """Outcome of a single verification step.

    ``result`` is None for a step that was registered but never evaluated,
    which is distinct from both ``ok`` and ``error``.
    """

    name: str
    result: StepResult | None
    message: str = ""
    started_at: datetime = field(default_factory=utcnow)
    ended_at: datetime | None = None
    command: str | None = None
    output: str = ""
    exit_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.result is StepResult.OK

    @property
    def duration_seconds(self) -> int | None:
        if self.ended_at is None:
            return None
        return int((self.ended_at - self.started_at).total_seconds())


class BuildStatus:
    """Append-only ledger of StepStatus entries for one validation run."""

    def __init__(self) -> None:
        self._steps: dict[str, StepStatus] = {}

    def record(self, status: StepStatus) -> StepStatus:
        self._steps[status.name] = status
        return status

    def get(self, name: str) -> StepStatus | None:
        return self._steps.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._steps

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[StepStatus]:
        return iter(list(self._steps.values()))

    @property
    def steps(self) -> list[StepStatus]:
        return list(self._steps.values())

    @property
    def names(self) -> list[str]:
        return list(self._steps)

    def all_steps_ok(self) -> bool:
        """True iff a ``merge`` step exists and every recorded step is ``ok``."""
        if MERGE_STEP not in self._steps:
            return False
        return all(s.ok for s in self._steps.values())

    def problem_steps(self) -> list[str]:
        return [name for name, s in self._steps.items() if not s.ok]

    def aggregate_result(self) -> StepResult:
        return StepResult.OK if self.all_steps_ok() else StepResult.ERROR
