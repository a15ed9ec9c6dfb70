"""Source-control provider interface consumed by the merge-gating engine.

The engine never talks to a hosting service directly. Pull request state,
comments, org membership, merging, commenting and pasting step output all go
through a BaseProvider. GitHubProvider is the production implementation;
tests substitute small in-memory fakes.

Implementations raise ProviderUnavailable when the remote call fails. The
engine does not retry these; they propagate to the caller as hard failures.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class ProviderUnavailable(RuntimeError):
    """A call to the source-control provider failed."""


@dataclass(frozen=True)
class PullRequestSnapshot:
    """Immutable view of a pull request, fetched once per evaluation."""

    repo: str
    number: int
    state: str
    head_sha: str
    base_ref: str
    author_login: str
    mergeable: bool | None
    mergeable_state: str
    title: str = ""

    @property
    def is_open(self) -> bool:
        return self.state == "open"


@dataclass(frozen=True)
class IssueComment:
    author_login: str
    body: str


class BaseProvider(ABC):
    @abstractmethod
    def get_pull_request(self, repo: str, number: int) -> PullRequestSnapshot:
        """Fetch a fresh snapshot of the pull request."""

    @abstractmethod
    def list_comments(self, repo: str, number: int) -> list[IssueComment]:
        """Return every conversation comment on the pull request, oldest first."""

    @abstractmethod
    def is_org_member(self, org: str, login: str) -> bool:
        ...

    @abstractmethod
    def merge_pull_request(self, repo: str, number: int, message: str) -> dict:
        """Merge the pull request and return the provider's response as a dict.

        Raises ProviderUnavailable if the merge is rejected or the call fails.
        """

    @abstractmethod
    def is_merged(self, repo: str, number: int) -> bool:
        ...

    @abstractmethod
    def close_pull_request(self, repo: str, number: int) -> None:
        ...

    @abstractmethod
    def post_comment(self, repo: str, number: int, text: str) -> None:
        ...

    @abstractmethod
    def create_paste(self, filename: str, text: str) -> str:
        """Upload ``text`` and return a URL where it can be read."""
