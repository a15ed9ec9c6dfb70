"""Merge executor: re-checks the pull request and asks the provider to merge it.

Provider state can change between evaluation and execution (someone merges by
hand, pushes a conflicting commit, edits .thumbs.yml), so the open, mergeable,
clean, config and review checks are repeated against a freshly fetched
snapshot right before merging.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

import yaml

from thumbs_core.config import is_reviewer_count
from thumbs_core.providers.base import BaseProvider, ProviderUnavailable, PullRequestSnapshot
from thumbs_core.status import StepResult, utcnow

logger = logging.getLogger(__name__)

DEFAULT_COMMIT_MESSAGE = "Thumbs Git Robot Merge. "


@dataclass
class MergeOutcome:
    result: StepResult
    message: str
    output: str = ""
    started_at: datetime = field(default_factory=utcnow)
    ended_at: datetime | None = None
    response: dict | None = None

    @property
    def ok(self) -> bool:
        return self.result is StepResult.OK


def merge_success_comment(snapshot: PullRequestSnapshot, response: dict) -> str:
    comment = (
        f"Successfully merged *{snapshot.repo}/pulls/{snapshot.number}* "
        f"(*{snapshot.head_sha}* on to *{snapshot.base_ref}*)\n\n"
    )
    comment += f" ```yaml    \n{yaml.safe_dump(response, default_flow_style=False)}\n ``` \n"
    return comment


class MergeExecutor:
    def __init__(self, provider: BaseProvider, commit_message: str = DEFAULT_COMMIT_MESSAGE):
        self.provider = provider
        self.commit_message = commit_message

    def _precondition_failure(
        self,
        snapshot: PullRequestSnapshot,
        config: Optional[dict],
        review_count: Callable[[], int] | None,
    ) -> str | None:
        if not snapshot.is_open:
            return "pr not open"
        if not snapshot.mergeable:
            return ".mergeable returns false"
        if snapshot.mergeable_state != "clean":
            return ".mergeable_state not clean"
        if not config or "build_steps" not in config or "minimum_reviewers" not in config:
            return "no usable .thumbs.yml"
        if not isinstance(config["build_steps"], list):
            return ".thumbs.yml build_steps is not a list"
        if not is_reviewer_count(config["minimum_reviewers"]):
            return ".thumbs.yml minimum_reviewers is not an integer"
        if review_count is not None and review_count() < config["minimum_reviewers"]:
            return "not enough code reviews"
        if config.get("merge") is not True:
            return ".thumbs.yml config merge=false"
        return None

    def execute(
        self,
        repo: str,
        number: int,
        config: Optional[dict],
        review_count: Callable[[], int] | None = None,
    ) -> MergeOutcome:
        """Merge ``repo#number`` if it still qualifies.

        Never raises for a rejected or failed merge; the outcome says what
        happened, including a merge whose confirmation comment could not be
        posted. Provider failures while re-checking state do propagate.
        """
        outcome = MergeOutcome(result=StepResult.ERROR, message="")

        if self.provider.is_merged(repo, number):
            logger.debug("%s %s already merged, nothing to do here", repo, number)
            outcome.message = "already merged"
            outcome.ended_at = utcnow()
            return outcome

        snapshot = self.provider.get_pull_request(repo, number)
        failure = self._precondition_failure(snapshot, config, review_count)
        if failure is not None:
            logger.debug("%s %s not merging: %s", repo, number, failure)
            outcome.message = failure
            outcome.ended_at = utcnow()
            return outcome

        logger.debug("%s %s starting merge request", repo, number)
        try:
            response = self.provider.merge_pull_request(repo, number, self.commit_message)
        except ProviderUnavailable as e:
            logger.error("Merge FAILED %s#%s: %s", repo, number, e)
            outcome.message = f"Merge FAILED {e}"
            outcome.output = repr(e)
            outcome.ended_at = utcnow()
            return outcome

        outcome.result = StepResult.OK
        outcome.message = "Merge OK"
        outcome.response = response
        outcome.output = yaml.safe_dump(response, default_flow_style=False)
        outcome.ended_at = utcnow()
        logger.debug("%s %s merge OK", repo, number)
        try:
            self.provider.post_comment(repo, number, merge_success_comment(snapshot, response))
        except ProviderUnavailable as e:
            logger.error("Merged %s#%s but could not post the confirmation: %s", repo, number, e)
        return outcome
