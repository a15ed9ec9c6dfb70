"""Integration runner: merge simulation followed by the configured build steps.

One runner owns one workspace directory and one BuildStatus for the duration
of a validation run. Steps run strictly in order and are never skipped: a
failed merge or a failed build step is recorded and the next step still runs
against whatever the workspace looks like at that point.
"""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import Callable, Optional

from thumbs_core.config import build_steps, load_thumbs_config
from thumbs_core.providers.base import PullRequestSnapshot
from thumbs_core.status import CLONE_STEP, MERGE_STEP, BuildStatus, StepResult, StepStatus, utcnow
from thumbs_core.workspace import CommandResult, GitCommandError, GitWorkspace, remove_tree, run_command

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def step_name_for(command: str) -> str:
    """Derive a stable ledger key from a build command.

    ``"make test"`` -> ``"make_test"``, ``"npm run-lint"`` -> ``"npm_runlint"``.
    """
    return _WHITESPACE_RE.sub("_", command).replace("-", "")


def default_build_dir(build_root: str, repo: str, pr_number: int) -> Path:
    return Path(build_root) / f"{repo.replace('/', '_')}_{pr_number}"


def transient_branch_name() -> str:
    return f"feature_{int(time.time())}"


class IntegrationRunner:
    def __init__(
        self,
        snapshot: PullRequestSnapshot,
        build_dir: str | Path,
        remote_url: str,
        command_timeout: float | None = None,
        clone: Callable[[str, Path], GitWorkspace] = GitWorkspace.clone,
        run: Callable[..., CommandResult] = run_command,
        branch_name: Callable[[], str] = transient_branch_name,
    ):
        self.snapshot = snapshot
        self.build_dir = Path(build_dir)
        self.remote_url = remote_url
        self.command_timeout = command_timeout
        self.build_status = BuildStatus()
        self._clone = clone
        self._run = run
        self._branch_name = branch_name

    def _debug(self, message: str, *args) -> None:
        logger.debug(
            "%s %s %s " + message, self.snapshot.repo, self.snapshot.number, self.snapshot.state, *args
        )

    def reset_workspace(self) -> None:
        remove_tree(self.build_dir)

    def attempt_integration(self, source_ref: str, target_ref: str) -> StepStatus:
        """Clone fresh and merge ``source_ref`` onto a new branch cut from ``target_ref``.

        Always records a ``merge`` step; a clone failure additionally records
        a ``clone`` step error.
        """
        started_at = utcnow()
        self.reset_workspace()

        try:
            workspace = self._clone(self.remote_url, self.build_dir)
        except (GitCommandError, OSError) as e:
            self.build_status.record(
                StepStatus(
                    name=CLONE_STEP,
                    result=StepResult.ERROR,
                    message="Clone failed!",
                    started_at=started_at,
                    ended_at=utcnow(),
                    output=str(e),
                )
            )
            logger.error("Clone of %s failed: %s", self.snapshot.repo, e)
            return self.build_status.record(
                StepStatus(
                    name=MERGE_STEP,
                    result=StepResult.ERROR,
                    message="Merge test failed",
                    started_at=started_at,
                    ended_at=utcnow(),
                    output=repr(e),
                )
            )

        self.build_status.record(
            StepStatus(
                name=CLONE_STEP,
                result=StepResult.OK,
                message=f"Cloned {self.snapshot.repo}",
                started_at=started_at,
                ended_at=utcnow(),
            )
        )

        try:
            workspace.checkout(source_ref)
            workspace.checkout(target_ref)
            workspace.create_branch(self._branch_name())
            self._debug(
                'Trying merge PR#%s "%s" %s onto %s', self.snapshot.number, self.snapshot.title, source_ref, target_ref
            )
            summary = workspace.merge(source_ref)
        except (GitCommandError, OSError) as e:
            logger.error("Merge of %s onto %s failed: %s", source_ref, target_ref, e)
            return self.build_status.record(
                StepStatus(
                    name=MERGE_STEP,
                    result=StepResult.ERROR,
                    message="Merge test failed",
                    started_at=started_at,
                    ended_at=utcnow(),
                    output=repr(e),
                )
            )

        return self.build_status.record(
            StepStatus(
                name=MERGE_STEP,
                result=StepResult.OK,
                message=f"Merge Success: {source_ref} onto target branch: {target_ref}",
                started_at=started_at,
                ended_at=utcnow(),
                output=summary,
            )
        )

    def run_build_step(self, name: str, command: str) -> StepStatus:
        started_at = utcnow()
        outcome = self._run(command, cwd=self.build_dir, timeout=self.command_timeout)
        ended_at = utcnow()

        if outcome.ok:
            result, message = StepResult.OK, "OK"
        elif outcome.timed_out:
            result, message = StepResult.ERROR, f"Step {name} timed out after {self.command_timeout}s!"
        else:
            result, message = StepResult.ERROR, f"Step {name} Failed!"

        status = self.build_status.record(
            StepStatus(
                name=name,
                result=result,
                message=message,
                started_at=started_at,
                ended_at=ended_at,
                command=command,
                output=outcome.output,
                exit_code=outcome.exit_code,
            )
        )
        self._debug('[ %s ] [%s] "%s"', name.upper(), result.value.upper(), command)
        return status

    def run_build_steps(self, commands: list[str]) -> BuildStatus:
        for command in commands:
            self.run_build_step(step_name_for(command), command)
        return self.build_status

    def validate(self) -> Optional[dict]:
        """Run the whole pipeline and return the workspace's ``.thumbs.yml``, if any.

        The config is read after the merge attempt so the build steps come
        from the target branch with the PR applied, or from the target branch
        alone when the merge failed.
        """
        self.attempt_integration(self.snapshot.head_sha, self.snapshot.base_ref)
        config = load_thumbs_config(self.build_dir) if self.build_dir.exists() else None
        self.run_build_steps(build_steps(config))
        return config
