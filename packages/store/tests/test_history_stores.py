"""Tests for thumbs-store implementations."""

from __future__ import annotations

from datetime import datetime, timezone

from thumbs_store.models import StepRecord, ValidationRecord
from thumbs_store.noop import NoOpStore
from thumbs_store.sqlite import SQLiteStore


def _make_record(repo="acme/widgets", pr_number=42, eligible=True, merged=True):
    return ValidationRecord(
        repo=repo,
        pr_number=pr_number,
        head_sha="a" * 40,
        base_ref="main",
        validated_at=datetime.now(timezone.utc).isoformat(),
        eligible=eligible,
        reasons=(
            ["1 of 1 code reviews and all steps passed"]
            if eligible
            else ["step make_test failed: Step make_test Failed!"]
        ),
        merged=merged,
        merge_message="Merge OK" if merged else "",
        steps=[
            StepRecord(name="merge", result="ok", message="Merge Success"),
            StepRecord(
                name="make_test",
                result="ok" if eligible else "error",
                message="OK",
                exit_code=0 if eligible else 2,
                duration_seconds=7,
            ),
        ],
    )


class TestNoOpStore:
    def test_save_does_not_raise(self):
        NoOpStore().save(_make_record())

    def test_list_runs_returns_empty(self):
        store = NoOpStore()
        store.save(_make_record())
        assert store.list_runs("acme/widgets") == []


class TestSQLiteStore:
    def test_save_and_list(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.save(_make_record())

        results = store.list_runs("acme/widgets")
        assert len(results) == 1
        assert results[0].pr_number == 42
        assert results[0].eligible is True
        assert results[0].merged is True
        store.close()

    def test_list_by_pr_number(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.save(_make_record(pr_number=1))
        store.save(_make_record(pr_number=2))

        results = store.list_runs("acme/widgets", pr_number=1)
        assert [r.pr_number for r in results] == [1]
        store.close()

    def test_repos_isolated(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.save(_make_record(repo="acme/widgets"))
        store.save(_make_record(repo="acme/gadgets"))

        assert [r.repo for r in store.list_runs("acme/gadgets")] == ["acme/gadgets"]
        store.close()

    def test_steps_and_reasons_roundtrip(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.save(_make_record(eligible=False, merged=False))

        record = store.list_runs("acme/widgets")[0]
        assert record.eligible is False
        assert record.reasons == ["step make_test failed: Step make_test Failed!"]
        assert [s.name for s in record.steps] == ["merge", "make_test"]
        assert record.steps[1].exit_code == 2
        assert record.steps[1].duration_seconds == 7
        assert record.problem_steps == ["make_test"]
        store.close()

    def test_persists_across_connections(self, tmp_path):
        db_path = str(tmp_path / "test.db")
        store_a = SQLiteStore(db_path=db_path)
        store_a.save(_make_record())
        store_a.close()

        store_b = SQLiteStore(db_path=db_path)
        assert len(store_b.list_runs("acme/widgets")) == 1
        store_b.close()
