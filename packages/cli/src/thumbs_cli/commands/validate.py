"""validate command: run the merge gate for one pull request."""

from __future__ import annotations

from datetime import datetime, timezone

import click
from rich.console import Console

from thumbs_core.engine import GateResult, ThumbsEngine
from thumbs_core.providers.base import ProviderUnavailable
from thumbs_core.providers.github import GitHubProvider
from thumbs_store.models import StepRecord, ValidationRecord

console = Console()


def _to_record(engine: ThumbsEngine, gate: GateResult) -> ValidationRecord:
    """Map the engine's state after a run to a ValidationRecord for the store."""
    return ValidationRecord(
        repo=engine.repo,
        pr_number=engine.pr_number,
        head_sha=engine.snapshot.head_sha,
        base_ref=engine.snapshot.base_ref,
        validated_at=datetime.now(timezone.utc).isoformat(),
        eligible=gate.verdict.eligible,
        reasons=list(gate.verdict.reasons),
        merged=gate.merged,
        merge_message=gate.merge.message if gate.merge else "",
        steps=[
            StepRecord(
                name=s.name,
                result=s.result.value if s.result else "",
                message=s.message,
                exit_code=s.exit_code,
                duration_seconds=s.duration_seconds,
            )
            for s in engine.build_status
        ],
    )


@click.command("validate")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option("--build-dir", default=None, help="Workspace directory. Defaults to <build_root>/<owner>_<name>_<pr>.")
@click.option("--no-merge", is_flag=True, help="Evaluate eligibility but never merge.")
@click.option("--no-comment", is_flag=True, help="Do not post the build status comment.")
@click.pass_context
def validate_cmd(ctx, repo: str, pr_number: int, build_dir: str | None, no_merge: bool, no_comment: bool):
    """Validate a pull request and merge it if every gate passes.

    Clones the repository, merges the PR head onto its base branch, runs the
    build_steps from .thumbs.yml and, when all steps pass and enough reviewers
    have commented +1, merges the pull request on GitHub.
    """
    from thumbs_cli.auth import resolve_github_token

    settings = ctx.obj["settings"]
    token = resolve_github_token(settings.get("github_token"))
    if not token:
        raise click.UsageError("No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.")

    try:
        provider = GitHubProvider(token=token)
        engine = ThumbsEngine(provider, repo, pr_number, settings=settings, build_dir=build_dir)
        engine.validate()
        if not no_comment:
            engine.post_build_status()
        if no_merge:
            gate = GateResult(verdict=engine.evaluate())
        else:
            gate = engine.evaluate_and_maybe_merge()
    except ProviderUnavailable as e:
        raise click.ClickException(str(e))

    if gate.verdict.eligible:
        console.print(f"[green]Eligible for merge: {gate.verdict.reason}[/green]")
    else:
        console.print(f"[yellow]Not eligible: {gate.verdict.reason}[/yellow]")
    if gate.merge is not None:
        style = "green" if gate.merged else "red"
        console.print(f"[{style}]Merge {gate.merge.result.value}: {gate.merge.message}[/{style}]")

    store = ctx.obj.get("store")
    if store is not None:
        store.save(_to_record(engine, gate))
