"""history command: display past validation runs from the store."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

console = Console()


@click.command("history")
@click.option("--repo", required=True, help="GitHub repository (owner/name).")
@click.option("--pr", "pr_number", type=int, default=None, help="Filter by PR number.")
@click.option("--limit", default=20, show_default=True, help="Maximum number of runs to show.")
@click.pass_context
def history_cmd(ctx, repo: str, pr_number: int | None, limit: int):
    """Show past validation runs for a repository."""
    from thumbs_store.noop import NoOpStore

    store = ctx.obj.get("store") if ctx.obj else None
    if store is None or isinstance(store, NoOpStore):
        raise click.UsageError("No store configured. Add 'store: sqlite' to .thumbs-bot.yml.")

    records = store.list_runs(repo, pr_number=pr_number)
    if not records:
        console.print("[yellow]No validation runs found.[/yellow]")
        return

    records = list(reversed(records))[:limit]

    table = Table(title=f"Validation History: {repo}", show_header=True, header_style="bold cyan")
    table.add_column("PR", style="bold", width=6)
    table.add_column("SHA", width=8)
    table.add_column("Base", max_width=20)
    table.add_column("Verdict", width=12)
    table.add_column("Merged", width=7)
    table.add_column("Problem steps / reason", max_width=50)
    table.add_column("Validated At", width=20)

    for r in records:
        verdict = "[green]eligible[/green]" if r.eligible else "[yellow]blocked[/yellow]"
        detail = ", ".join(r.problem_steps) or (r.reasons[0] if r.reasons else "")
        table.add_row(
            f"#{r.pr_number}",
            r.head_sha[:7],
            r.base_ref,
            verdict,
            "yes" if r.merged else "no",
            detail,
            r.validated_at[:19].replace("T", " "),
        )

    console.print(table)
