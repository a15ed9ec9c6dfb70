"""Review counting: which pull request comments count as an approving review.

Two policies exist, selected by ``org_mode`` in .thumbs.yml:

- open: any comment containing ``+1`` from someone other than the PR author.
- org: additionally, the commenter must be a member of the organization that
  owns the repository, and must not be one of the bot accounts.

The ``+1`` match is a plain substring test, so ``+10`` and ``lgtm +1 nice``
both count while ``+ 1`` does not. Repeated approvals from the same login are
counted once per comment unless ``dedupe`` is set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from thumbs_core.providers.base import IssueComment

logger = logging.getLogger(__name__)

APPROVAL_TOKEN = "+1"
EXCLUDED_REVIEWER_LOGINS = frozenset({"thumbot"})


@dataclass(frozen=True)
class ReviewComment:
    author_login: str
    body: str
    by_pr_author: bool


def org_from_repo(repo: str) -> str:
    """``"acme/widgets"`` -> ``"acme"``."""
    return repo.split("/", 1)[0]


def contains_plus_one(body: str | None) -> bool:
    return APPROVAL_TOKEN in (body or "")


def to_review_comments(comments: Iterable[IssueComment], pr_author: str) -> list[ReviewComment]:
    return [
        ReviewComment(author_login=c.author_login, body=c.body, by_pr_author=c.author_login == pr_author)
        for c in comments
    ]


def non_author_comments(comments: Iterable[ReviewComment]) -> list[ReviewComment]:
    return [c for c in comments if not c.by_pr_author]


def classify_reviews(
    comments: Iterable[IssueComment],
    pr_author: str,
    org_mode: bool = False,
    repo: str | None = None,
    is_org_member: Callable[[str, str], bool] | None = None,
    dedupe: bool = False,
) -> list[ReviewComment]:
    """Return the qualifying approval comments, in comment order.

    In org mode ``repo`` and ``is_org_member`` are required; membership is only
    looked up for comments that already carry the approval token.
    """
    candidates = non_author_comments(to_review_comments(comments, pr_author))
    approvals = [c for c in candidates if contains_plus_one(c.body)]

    if org_mode:
        if repo is None or is_org_member is None:
            raise ValueError("org_mode review counting needs the repository and an org membership lookup.")
        org = org_from_repo(repo)
        membership: dict[str, bool] = {}
        qualified = []
        for comment in approvals:
            login = comment.author_login
            if login in EXCLUDED_REVIEWER_LOGINS:
                continue
            if login not in membership:
                membership[login] = is_org_member(org, login)
            if membership[login]:
                qualified.append(comment)
        logger.debug("org %s approvals: %s", org, [c.author_login for c in qualified])
        approvals = qualified

    if dedupe:
        seen: set[str] = set()
        unique = []
        for comment in approvals:
            if comment.author_login not in seen:
                seen.add(comment.author_login)
                unique.append(comment)
        approvals = unique

    return approvals
