"""Tests for the merge executor's re-checks and merge call."""

from fakes import FakeProvider, make_snapshot

from thumbs_core.merger import MergeExecutor, merge_success_comment
from thumbs_core.providers.base import ProviderUnavailable
from thumbs_core.status import StepResult

CONFIG = {"minimum_reviewers": 1, "build_steps": ["make test"], "merge": True}


def _execute(provider, config=CONFIG, review_count=None):
    return MergeExecutor(provider).execute("acme/widgets", 42, config, review_count=review_count)


class TestRechecks:
    def test_already_merged_skips_merge_call(self):
        provider = FakeProvider(merged=True)
        outcome = _execute(provider)
        assert outcome.result is StepResult.ERROR
        assert outcome.message == "already merged"
        assert provider.merge_calls == []
        assert outcome.ended_at is not None

    def test_closed_since_evaluation(self):
        provider = FakeProvider(snapshot=make_snapshot(state="closed"))
        assert _execute(provider).message == "pr not open"
        assert provider.merge_calls == []

    def test_no_longer_mergeable(self):
        provider = FakeProvider(snapshot=make_snapshot(mergeable=False))
        assert _execute(provider).message == ".mergeable returns false"

    def test_no_longer_clean(self):
        provider = FakeProvider(snapshot=make_snapshot(mergeable_state="dirty"))
        assert _execute(provider).message == ".mergeable_state not clean"

    def test_incomplete_config(self):
        provider = FakeProvider()
        assert _execute(provider, config={"minimum_reviewers": 1, "merge": True}).message == "no usable .thumbs.yml"
        assert _execute(provider, config=None).message == "no usable .thumbs.yml"
        assert provider.merge_calls == []

    def test_non_integer_minimum_reviewers(self):
        provider = FakeProvider()
        for value in (None, "1"):
            outcome = _execute(provider, config={**CONFIG, "minimum_reviewers": value}, review_count=lambda: 5)
            assert outcome.message == ".thumbs.yml minimum_reviewers is not an integer"
        assert provider.merge_calls == []

    def test_scalar_build_steps(self):
        provider = FakeProvider()
        outcome = _execute(provider, config={**CONFIG, "build_steps": "make test"})
        assert outcome.message == ".thumbs.yml build_steps is not a list"
        assert provider.merge_calls == []

    def test_reviews_withdrawn(self):
        provider = FakeProvider()
        outcome = _execute(provider, review_count=lambda: 0)
        assert outcome.message == "not enough code reviews"
        assert provider.merge_calls == []

    def test_merge_disabled(self):
        provider = FakeProvider()
        outcome = _execute(provider, config={**CONFIG, "merge": False})
        assert outcome.message == ".thumbs.yml config merge=false"
        assert provider.merge_calls == []


class TestMerge:
    def test_success_posts_confirmation(self):
        provider = FakeProvider()
        outcome = _execute(provider, review_count=lambda: 1)

        assert outcome.ok
        assert provider.merge_calls == [("acme/widgets", 42, "Thumbs Git Robot Merge. ")]
        assert len(provider.posted) == 1
        assert "Successfully merged *acme/widgets/pulls/42*" in provider.posted[0]
        assert "merged: true" in outcome.output

    def test_failed_merge_records_error_without_notification(self):
        provider = FakeProvider(merge_error="405 Base branch was modified")
        outcome = _execute(provider)

        assert outcome.result is StepResult.ERROR
        assert outcome.message.startswith("Merge FAILED")
        assert "Base branch was modified" in outcome.output
        assert provider.posted == []

    def test_failed_confirmation_keeps_merge_outcome(self):
        class CommentFailingProvider(FakeProvider):
            def post_comment(self, repo, number, text):
                raise ProviderUnavailable("502 Bad Gateway")

        provider = CommentFailingProvider()
        outcome = _execute(provider)

        assert outcome.ok
        assert outcome.message == "Merge OK"
        assert outcome.ended_at is not None
        assert provider.merged


def test_merge_success_comment_names_refs():
    comment = merge_success_comment(make_snapshot(), {"merged": True, "sha": "c" * 40})
    assert "(*" + "a" * 40 + "* on to *main*)" in comment
    assert "```yaml" in comment
