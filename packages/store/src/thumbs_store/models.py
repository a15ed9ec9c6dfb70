"""Validation history data models.

Decoupled from thumbs_core so the store layer has no knowledge of the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class StepRecord:
    """One build step as it finished in a validation run."""

    name: str
    result: str  # "ok" | "error" | "" when never evaluated
    message: str = ""
    exit_code: int | None = None
    duration_seconds: int | None = None


@dataclass
class ValidationRecord:
    """A completed validation run, built by the CLI after the engine returns."""

    repo: str
    pr_number: int
    head_sha: str
    base_ref: str
    validated_at: str  # ISO-8601 UTC timestamp
    eligible: bool
    reasons: list[str] = field(default_factory=list)
    merged: bool = False
    merge_message: str = ""
    steps: list[StepRecord] = field(default_factory=list)

    @property
    def problem_steps(self) -> list[str]:
        return [s.name for s in self.steps if s.result != "ok"]
