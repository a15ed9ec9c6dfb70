"""Abstract store interface for validation history."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from thumbs_store.models import ValidationRecord


class BaseStore(ABC):
    @abstractmethod
    def save(self, record: ValidationRecord) -> None:
        """Persist a completed validation run."""

    @abstractmethod
    def list_runs(self, repo: str, pr_number: int | None = None) -> list[ValidationRecord]:
        """Return runs for a repo, oldest first, optionally filtered by PR number."""

    def close(self) -> None:
        """Release any resources held by the store. No-op by default."""
