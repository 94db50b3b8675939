"""modcore CLI: operate the moderation core from a terminal."""

import sys

import click
from rich.console import Console
from rich.table import Table

from modcore import __version__
from modcore.common.log import configure_logging
from modcore.config import load_settings
from modcore.core import ModerationCore
from modcore.errors import ModerationError
from modcore.moderators.models import Capabilities

console = Console()


def _fail(exc: ModerationError) -> None:
    console.print(f"[red]{exc.code}:[/] {exc.message}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", default=None, help="YAML settings file")
@click.option("--as", "caller", default=0, type=int, help="User id to act as")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, caller: int):
    """modcore: community moderation core.

    Filter text, evaluate rules, import rule and word catalogs, and
    inspect the review queue, trust scores and penalties.
    """
    settings = load_settings(config_path)
    configure_logging(settings.log_level, settings.log_file or None)
    ctx.obj = {"core": ModerationCore(settings), "caller": caller}


# ── Filtering ────────────────────────────────────────────────────────


@main.command("filter-text")
@click.argument("text")
@click.pass_obj
def filter_text(obj: dict, text: str):
    """Run TEXT through the prohibited-word filter."""
    outcome = obj["core"].words.filter(text)
    if not outcome.was_filtered:
        console.print("[green]Clean[/]")
        return
    console.print(f"[yellow]Filtered:[/] {outcome.cleaned}")
    console.print(f"  matched: {', '.join(outcome.matched_terms)}")


@main.command()
@click.argument("text")
@click.option("--kind", default="comment", type=click.Choice(["topic", "comment", "username"]))
@click.option("--user", "user_id", default=0, type=int, help="Author of the text")
@click.pass_obj
def evaluate(obj: dict, text: str, kind: str, user_id: int):
    """Evaluate TEXT against the active rules."""
    verdict = obj["core"].rules.evaluate(text, kind, user_id)
    if verdict is None:
        console.print("[green]No rule triggered.[/]")
        return
    console.print(f"[bold]Action:[/] {verdict.action.value} (severity {verdict.severity})")
    console.print(f"  rules: {verdict.triggered_rule_ids}")
    if verdict.cleaned_content != verdict.content:
        console.print(f"  cleaned: {verdict.cleaned_content}")


# ── Catalog import ───────────────────────────────────────────────────


@main.command("import-rules")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_rules(obj: dict, path: str):
    """Create every rule listed in the YAML file at PATH."""
    from modcore.rules.loader import load_rules_file

    core, caller = obj["core"], obj["caller"]
    try:
        entries = load_rules_file(path)
        with core.storage.transaction():
            created = [core.rules.create_rule(caller, **entry) for entry in entries]
    except ModerationError as exc:
        _fail(exc)
        return
    console.print(f"[green]Imported {len(created)} rule(s)[/] from {path}")


@main.command("import-words")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_words(obj: dict, path: str):
    """Add every prohibited word listed in the YAML file at PATH."""
    from modcore.rules.loader import load_words_file

    core, caller = obj["core"], obj["caller"]
    try:
        entries = load_words_file(path)
        with core.storage.transaction():
            created = [core.words.add(caller, **entry) for entry in entries]
    except ModerationError as exc:
        _fail(exc)
        return
    console.print(f"[green]Imported {len(created)} word(s)[/] from {path}")


# ── Review queue ─────────────────────────────────────────────────────


@main.command()
@click.option("--status", default="pending", type=click.Choice(["pending", "in_review", "approved", "rejected", "all"]))
@click.option("--page", default=1, type=int)
@click.option("--page-size", default=20, type=int)
@click.pass_obj
def queue(obj: dict, status: str, page: int, page_size: int):
    """List review queue items."""
    try:
        result = obj["core"].queue.list(obj["caller"], status, page, page_size)
    except ModerationError as exc:
        _fail(exc)
        return

    if not result.items:
        console.print("[yellow]Queue is empty.[/]")
        return

    table = Table(title=f"Review queue: {status} (page {result.page}/{result.pages}, {result.total} total)")
    table.add_column("ID", style="dim")
    table.add_column("Content", style="cyan")
    table.add_column("Priority", justify="right")
    table.add_column("Status")
    table.add_column("Assignee", justify="right")
    table.add_column("Reason")
    for item in result.items:
        table.add_row(
            str(item.id),
            str(item.ref),
            str(item.priority),
            item.status.value,
            str(item.assignee_id or "-"),
            item.reason[:60],
        )
    console.print(table)


@main.command("queue-stats")
@click.pass_obj
def queue_stats(obj: dict):
    """Show review queue counts."""
    try:
        stats = obj["core"].queue.stats(obj["caller"])
    except ModerationError as exc:
        _fail(exc)
        return
    table = Table(title="Review queue")
    table.add_column("Status")
    table.add_column("Count", justify="right", style="green")
    for name, count in stats.items():
        table.add_row(name, str(count))
    console.print(table)


# ── Users ────────────────────────────────────────────────────────────


@main.command()
@click.argument("user_id", type=int)
@click.pass_obj
def trust(obj: dict, user_id: int):
    """Show USER_ID's trust score."""
    score = obj["core"].trust.get(user_id)
    table = Table(title=f"Trust score for user {user_id}")
    table.add_column("Field")
    table.add_column("Value", justify="right")
    table.add_row("level", score.trust_level.value)
    table.add_row("trust score", f"{score.trust_score:.2f}")
    table.add_row("adjusted", f"{score.adjusted_score:.2f}")
    table.add_row("content / community / moderator", f"{score.content_score:.0f} / {score.community_score:.0f} / {score.moderator_score:.0f}")
    table.add_row("reports", str(score.report_count))
    table.add_row("warnings", str(score.warning_count))
    table.add_row("rejections", str(score.content_rejections))
    console.print(table)


@main.command()
@click.argument("user_id", type=int)
@click.pass_obj
def restricted(obj: dict, user_id: int):
    """Check whether USER_ID may post."""
    is_restricted, reason = obj["core"].penalties.is_restricted(user_id)
    if is_restricted:
        console.print(f"[red]Restricted:[/] {reason}")
    else:
        console.print("[green]Not restricted.[/]")


@main.command()
@click.argument("user_id", type=int)
@click.option("--cap", "caps", multiple=True, type=click.Choice(Capabilities.names()), help="Capability to grant (repeatable)")
@click.pass_obj
def grant(obj: dict, user_id: int, caps: tuple[str, ...]):
    """Make USER_ID a moderator with the given capabilities."""
    try:
        privilege = obj["core"].moderators.grant(obj["caller"], user_id, {c: True for c in caps})
    except ModerationError as exc:
        _fail(exc)
        return
    granted = [name for name, on in privilege.capabilities.to_dict().items() if on]
    console.print(f"[green]User {user_id} is now a moderator[/] ({', '.join(granted) or 'no capabilities'})")


if __name__ == "__main__":
    main()
