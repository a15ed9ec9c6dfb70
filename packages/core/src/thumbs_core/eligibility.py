"""Merge eligibility: may this pull request be merged automatically right now?

Preconditions are checked in a fixed order and evaluation stops at the first
one that fails; that precondition's reason is the only one reported:

    1. PR is open
    2. provider reports it mergeable
    3. provider's mergeable_state is "clean"
    4. the build status has a merge step
    5. every recorded step is ok
    6. .thumbs.yml is present and sets an integer minimum_reviewers
    7. enough qualifying reviews        (posts "Waiting for ..." comment)
    8. .thumbs.yml sets merge: true     (posts "No Automerge ..." comment)

The merge executor additionally requires build_steps in .thumbs.yml, so a
config without that key can be eligible here and still not be merged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from thumbs_core.config import is_reviewer_count
from thumbs_core.providers.base import PullRequestSnapshot
from thumbs_core.status import MERGE_STEP, BuildStatus

logger = logging.getLogger(__name__)

ReviewCount = Union[int, Callable[[], int]]


@dataclass
class Verdict:
    eligible: bool
    reasons: list[str] = field(default_factory=list)

    @property
    def reason(self) -> str:
        return self.reasons[0] if self.reasons else ""

    def __bool__(self) -> bool:
        return self.eligible


def waiting_for_reviews_message(minimum: int) -> str:
    plurality = "s" if minimum > 1 else ""
    return f"Waiting for at least {minimum} code review{plurality} "


def _yaml_scalar(value) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def merge_disabled_message(config: dict) -> str:
    return f"No Automerge:  *.thumbs.yml* says ```merge: {_yaml_scalar(config.get('merge'))}```"


def _ineligible(reason: str) -> Verdict:
    logger.debug("not valid for merge: %s", reason)
    return Verdict(eligible=False, reasons=[reason])


def evaluate_merge_eligibility(
    snapshot: PullRequestSnapshot,
    build_status: BuildStatus,
    config: Optional[dict],
    review_count: ReviewCount,
    notify: Callable[[str], None] | None = None,
) -> Verdict:
    """Decide whether ``snapshot`` may be merged automatically.

    ``review_count`` may be a zero-argument callable; it is only invoked once
    the first six preconditions hold, so comments are not fetched for PRs that
    are rejected earlier. ``notify`` receives the waiting-for-reviews and
    merge-disabled messages.
    """
    if not snapshot.is_open:
        return _ineligible(f"pull request is not open (state: {snapshot.state})")
    if not snapshot.mergeable:
        return _ineligible("pull request is not mergeable")
    if snapshot.mergeable_state != "clean":
        return _ineligible(f"mergeable_state is not clean ({snapshot.mergeable_state})")

    if MERGE_STEP not in build_status:
        return _ineligible("merge step has not been run")
    for step in build_status:
        if step.result is None:
            return _ineligible(f"step {step.name} has no result")
        if not step.ok:
            return _ineligible(f"step {step.name} failed: {step.message}")

    if not config:
        return _ineligible("no .thumbs.yml config found")
    if "minimum_reviewers" not in config:
        return _ineligible(".thumbs.yml is missing minimum_reviewers")
    minimum = config["minimum_reviewers"]
    if not is_reviewer_count(minimum):
        return _ineligible(f".thumbs.yml minimum_reviewers must be an integer (got {minimum!r})")

    count = review_count() if callable(review_count) else review_count
    logger.debug("review_count: %d >= %s", count, minimum)
    if count < minimum:
        message = waiting_for_reviews_message(minimum)
        if notify is not None:
            notify(message)
        return _ineligible(f"{message.strip()} ({count} of {minimum})")

    if config.get("merge") is not True:
        message = merge_disabled_message(config)
        if notify is not None:
            notify(message)
        return _ineligible(f"automatic merge is disabled by .thumbs.yml (merge: {config.get('merge')!r})")

    logger.debug("valid for merge")
    return Verdict(eligible=True, reasons=[f"{count} of {minimum} code reviews and all steps passed"])
