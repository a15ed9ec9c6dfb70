"""ThumbsEngine: validation and merge gating for a single pull request.

A driver creates one engine per pull request and calls, in order:

    engine.validate()                  # clone, merge simulation, build steps
    engine.post_build_status()         # optional: report the run on the PR
    engine.evaluate_and_maybe_merge()  # verdict, then merge if eligible

Each engine owns its workspace directory and build status. Engines for
different pull requests share nothing and may run concurrently; two engines
for the same pull request must not share a build_dir.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from rich.console import Console

from thumbs_core.config import DEFAULT_SETTINGS, minimum_reviewers
from thumbs_core.eligibility import Verdict, evaluate_merge_eligibility
from thumbs_core.merger import MergeExecutor, MergeOutcome
from thumbs_core.providers.base import BaseProvider
from thumbs_core.report import render_build_status_comment, render_reviewers_comment, upload_step_outputs
from thumbs_core.reviews import ReviewComment, classify_reviews
from thumbs_core.runner import IntegrationRunner, default_build_dir
from thumbs_core.status import BuildStatus
from thumbs_core.workspace import CommandResult, GitWorkspace, run_command

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class GateResult:
    """What evaluate_and_maybe_merge() decided and, if it merged, how that went."""

    verdict: Verdict
    merge: MergeOutcome | None = None

    @property
    def merged(self) -> bool:
        return self.merge is not None and self.merge.ok


class ThumbsEngine:
    def __init__(
        self,
        provider: BaseProvider,
        repo: str,
        pr_number: int,
        settings: Optional[dict] = None,
        build_dir: str | Path | None = None,
        clone: Callable[[str, Path], GitWorkspace] = GitWorkspace.clone,
        run: Callable[..., CommandResult] = run_command,
    ):
        self.provider = provider
        self.repo = repo
        self.pr_number = pr_number
        self.settings = {**DEFAULT_SETTINGS, **(settings or {})}
        if build_dir is None:
            build_dir = default_build_dir(self.settings["build_root"], repo, pr_number)
        self.build_dir = Path(build_dir)
        self.snapshot = provider.get_pull_request(repo, pr_number)
        self.build_status = BuildStatus()
        self.config: Optional[Mapping] = None
        self._validated = False
        self._clone = clone
        self._run = run

    @property
    def minimum_reviewers(self) -> int:
        return minimum_reviewers(self.config)

    @property
    def org_mode(self) -> bool:
        return bool(self.config and self.config.get("org_mode"))

    def validate(self) -> BuildStatus:
        """Clone, simulate the merge and run every configured build step.

        Loads .thumbs.yml from the merged workspace. An engine validates once;
        re-validating means creating a new engine so the config is re-read.
        """
        if self._validated:
            raise RuntimeError("This engine has already validated; create a new ThumbsEngine to re-validate.")
        self._validated = True

        runner = IntegrationRunner(
            self.snapshot,
            self.build_dir,
            remote_url=self.settings["remote_url"].format(repo=self.repo),
            command_timeout=self.settings.get("command_timeout"),
            clone=self._clone,
            run=self._run,
        )
        console.print(f"[cyan]Validating {self.repo}#{self.pr_number} in {self.build_dir}[/cyan]")
        config = runner.validate()
        self.config = MappingProxyType(dict(config)) if config is not None else None
        self.build_status = runner.build_status

        for step in self.build_status:
            style = "green" if step.ok else "red"
            console.print(f"  [{style}]{step.name}: {step.result.value if step.result else 'pending'}[/{style}]")
        return self.build_status

    def reviews(self) -> list[ReviewComment]:
        """Qualifying reviews, recomputed from the provider on every call."""
        comments = self.provider.list_comments(self.repo, self.pr_number)
        return classify_reviews(
            comments,
            pr_author=self.snapshot.author_login,
            org_mode=self.org_mode,
            repo=self.repo,
            is_org_member=self.provider.is_org_member,
            dedupe=bool(self.settings.get("dedupe_reviewers")),
        )

    def review_count(self) -> int:
        return len(self.reviews())

    def add_comment(self, text: str) -> None:
        self.provider.post_comment(self.repo, self.pr_number, text)

    def evaluate(self) -> Verdict:
        snapshot = self.provider.get_pull_request(self.repo, self.pr_number)
        verdict = evaluate_merge_eligibility(
            snapshot,
            self.build_status,
            self.config,
            self.review_count,
            notify=self.add_comment,
        )
        logger.debug(
            "%s %s %s valid_for_merge=%s %s",
            self.repo,
            self.pr_number,
            snapshot.state,
            verdict.eligible,
            verdict.reasons,
        )
        return verdict

    def evaluate_and_maybe_merge(self) -> GateResult:
        verdict = self.evaluate()
        if not verdict.eligible:
            console.print(f"[yellow]Not merging {self.repo}#{self.pr_number}: {verdict.reason}[/yellow]")
            return GateResult(verdict=verdict)

        executor = MergeExecutor(self.provider, commit_message=self.settings["merge_commit_message"])
        outcome = executor.execute(self.repo, self.pr_number, self.config, review_count=self.review_count)
        if outcome.ok:
            console.print(f"[green]Merged {self.repo}#{self.pr_number}[/green]")
        else:
            console.print(f"[red]Merge of {self.repo}#{self.pr_number} did not happen: {outcome.message}[/red]")
        return GateResult(verdict=verdict, merge=outcome)

    def build_status_comment(self) -> str:
        paste_urls = upload_step_outputs(self.build_status, self.provider.create_paste)
        return render_build_status_comment(
            self.build_status,
            paste_urls,
            review_count=self.review_count(),
            minimum_reviewers=self.minimum_reviewers,
            repo=self.repo,
            org_mode=self.org_mode,
        )

    def post_build_status(self) -> str:
        comment = self.build_status_comment()
        self.add_comment(comment)
        return comment

    def post_reviewers(self) -> str:
        comment = render_reviewers_comment(self.reviews())
        self.add_comment(comment)
        return comment

    def close(self) -> None:
        self.provider.close_pull_request(self.repo, self.pr_number)
