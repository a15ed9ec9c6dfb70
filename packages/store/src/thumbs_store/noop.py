"""No-op store, the default when no history store is configured."""

from __future__ import annotations

from typing import TYPE_CHECKING

from thumbs_store.base import BaseStore

if TYPE_CHECKING:
    from thumbs_store.models import ValidationRecord


class NoOpStore(BaseStore):
    def save(self, record: ValidationRecord) -> None:
        pass

    def list_runs(self, repo: str, pr_number: int | None = None) -> list[ValidationRecord]:
        return []
