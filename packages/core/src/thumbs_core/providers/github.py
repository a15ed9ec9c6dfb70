"""GitHub implementation of BaseProvider, backed by PyGithub.

Credentials are passed in explicitly; nothing here reads the environment.
Every PyGithub failure is re-raised as ProviderUnavailable so callers only
deal with one exception type.
"""

from __future__ import annotations

import logging
from functools import wraps

from github import Github, GithubException, InputFileContent

from thumbs_core.providers.base import BaseProvider, IssueComment, ProviderUnavailable, PullRequestSnapshot

logger = logging.getLogger(__name__)


def _provider_call(func):
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except GithubException as e:
            logger.error("GitHub API call %s failed: %s", func.__name__, e)
            raise ProviderUnavailable(f"GitHub API call {func.__name__} failed: {e}") from e

    return wrapper


class GitHubProvider(BaseProvider):
    def __init__(self, token: str, client: Github | None = None):
        if not token and client is None:
            raise ValueError("A GitHub token is required.")
        self._gh = client if client is not None else Github(token)

    def _pull(self, repo: str, number: int):
        return self._gh.get_repo(repo).get_pull(number)

    @_provider_call
    def get_pull_request(self, repo: str, number: int) -> PullRequestSnapshot:
        pr = self._pull(repo, number)
        return PullRequestSnapshot(
            repo=repo,
            number=pr.number,
            state=pr.state,
            head_sha=pr.head.sha,
            base_ref=pr.base.ref,
            author_login=pr.user.login,
            mergeable=pr.mergeable,
            mergeable_state=pr.mergeable_state,
            title=pr.title or "",
        )

    @_provider_call
    def list_comments(self, repo: str, number: int) -> list[IssueComment]:
        issue = self._gh.get_repo(repo).get_issue(number)
        return [IssueComment(author_login=c.user.login, body=c.body or "") for c in issue.get_comments()]

    @_provider_call
    def is_org_member(self, org: str, login: str) -> bool:
        organization = self._gh.get_organization(org)
        return organization.has_in_members(self._gh.get_user(login))

    @_provider_call
    def merge_pull_request(self, repo: str, number: int, message: str) -> dict:
        status = self._pull(repo, number).merge(commit_message=message)
        if not status.merged:
            raise ProviderUnavailable(f"GitHub refused to merge {repo}#{number}: {status.message}")
        return {"merged": status.merged, "sha": status.sha, "message": status.message}

    @_provider_call
    def is_merged(self, repo: str, number: int) -> bool:
        return self._pull(repo, number).is_merged()

    @_provider_call
    def close_pull_request(self, repo: str, number: int) -> None:
        self._pull(repo, number).edit(state="closed")

    @_provider_call
    def post_comment(self, repo: str, number: int, text: str) -> None:
        self._gh.get_repo(repo).get_issue(number).create_comment(text)

    @_provider_call
    def create_paste(self, filename: str, text: str) -> str:
        gist = self._gh.get_user().create_gist(False, {filename: InputFileContent(text or " ")})
        return gist.html_url
