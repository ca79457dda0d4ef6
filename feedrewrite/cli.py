"""
FeedRewrite Developer CLI
=========================

Command line tools for trying plugin configuration outside the host.

Usage:
    feedrewrite --help                              # Show all commands
    feedrewrite check-config                        # Show effective settings
    feedrewrite test-rules rules.json page.html     # Run rules against a file
    feedrewrite preview FEED_URL config.json        # Run the plugin chain over a feed
"""

import calendar
import json
import sys
from pathlib import Path
from typing import Any, Dict, List

import click
import feedparser
from rich.console import Console
from rich.table import Table

from .config.settings import get_settings
from .hooks import HookManager
from .host.models import Entry, InMemoryUserConfiguration
from .plugins import PLUGINS_BY_KEY, build_extensions, register_extensions
from .replacer.applicator import RuleStatus, apply_rules
from .replacer.placeholders import EntryContext
from .replacer.rules import Rule, RuleSet
from .utils.exceptions import FeedRewriteError
from .utils.logging import PerformanceLogger, configure_application_logging, get_logger_for_component

console = Console()

STATUS_STYLES = {
    RuleStatus.APPLIED: "[green]applied[/green]",
    RuleStatus.UNCHANGED: "[dim]unchanged[/dim]",
    RuleStatus.SKIPPED_EMPTY: "[yellow]skipped (empty)[/yellow]",
    RuleStatus.SKIPPED_INVALID: "[red]skipped (invalid)[/red]",
    RuleStatus.REVERTED: "[red]reverted[/red]",
}


def _load_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise click.BadParameter(f"Cannot read JSON from {path}: {e}")


def load_rules(data: Any, feed_id: str) -> List[Rule]:
    """Rules from a JSON document.

    Accepts a plain list of ``{search_regex, replace_string}`` objects or a
    stored Replacer configuration (``{"replacements": {...}}``), in which
    case the rules of ``feed_id`` are used.
    """
    if isinstance(data, list):
        return [Rule.from_config(item) for item in data if isinstance(item, dict)]
    if isinstance(data, dict):
        return list(RuleSet.from_config(data.get("replacements", data)).rules_for(feed_id))
    raise click.BadParameter("Rules file must hold a list of rules or a Replacer configuration")


def entry_from_feedparser(item: Any, feed_id: str, feed_url: str, feed_title: str) -> Entry:
    """Convert a feedparser item into an ``Entry``."""
    if item.get("content"):
        content = item["content"][0].get("value", "")
    else:
        content = item.get("summary", "")

    fields: Dict[str, Any] = {
        "feed_id": feed_id,
        "feed_url": feed_url,
        "feed_title": feed_title,
        "link": item.get("link", ""),
        "title": item.get("title", ""),
        "content": content,
    }
    published = item.get("published_parsed") or item.get("updated_parsed")
    if published:
        fields["date"] = calendar.timegm(published)
    return Entry(**fields)


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, debug):
    """FeedRewrite - entry rewriting plugins for feed readers."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        return

    try:
        settings = get_settings()
    except FeedRewriteError as e:
        console.print(f"[bold red]❌ Configuration error: {e}[/bold red]")
        sys.exit(1)

    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
    )
    ctx.obj['settings'] = settings


@cli.command()
@click.pass_context
def check_config(ctx):
    """Show the effective process settings."""
    console.print("[bold blue]🔧 Checking FeedRewrite Configuration[/bold blue]")
    settings = ctx.obj['settings']

    table = Table(title="Configuration Status")
    table.add_column("Component", style="cyan")
    table.add_column("Details")

    table.add_row("HTTP", f"UA: {settings.http.user_agent}, retries: {settings.http.max_retries}")
    table.add_row(
        "InlineImages",
        f"max {settings.inline_images.max_file_size} bytes, "
        f"timeout {settings.inline_images.download_timeout}s",
    )
    table.add_row("FixXEmbedding", f"{settings.x_embed.api_base} (timeout {settings.x_embed.timeout}s)")
    table.add_row(
        "AiConverter",
        f"{settings.ai.default_model} @ {settings.ai.default_endpoint}, "
        f"batch {settings.ai.pending_batch_size}",
    )
    table.add_row(
        "Logging",
        f"{settings.get_effective_log_level()}, file: {settings.logging.file_path or 'none'}",
    )
    table.add_row("Plugins", ", ".join(PLUGINS_BY_KEY))

    console.print(table)
    console.print("[bold green]✅ Configuration loaded[/bold green]")


@cli.command()
@click.argument('rules_file', type=click.Path(exists=True, dir_okay=False))
@click.argument('html_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--feed-id', default='1', help='Feed whose rules to use from a stored configuration')
@click.option('--url', 'entry_url', default='', help='Value for {url}')
@click.option('--feed-url', default='', help='Value for {feed_url}')
@click.option('--title', 'feed_title', default='', help='Value for {title}')
@click.option('--show-content/--no-show-content', default=True, help='Print the rewritten content')
def test_rules(rules_file, html_file, feed_id, entry_url, feed_url, feed_title, show_content):
    """Run Replacer rules against an HTML file and report each rule."""
    rules = load_rules(_load_json(rules_file), feed_id)
    content = Path(html_file).read_text(encoding="utf-8")

    if not rules:
        console.print(f"[yellow]No rules found for feed {feed_id}[/yellow]")
        return

    context = EntryContext(
        feed_id=feed_id,
        feed_url=feed_url,
        feed_title=feed_title,
        entry_url=entry_url,
        content=content,
    )
    result = apply_rules(rules, content, context)

    table = Table(title="Rule Results")
    table.add_column("#", style="cyan")
    table.add_column("Pattern")
    table.add_column("Replacement")
    table.add_column("Status")
    table.add_column("Details")

    for outcome in result.outcomes:
        table.add_row(
            str(outcome.number),
            outcome.rule.pattern,
            outcome.rule.replacement,
            STATUS_STYLES[outcome.status],
            outcome.reason or "",
        )

    console.print(table)
    console.print(
        f"{result.applied_count} of {len(rules)} rule(s) changed the content, "
        f"{len(result.skipped)} skipped or reverted"
    )

    if show_content:
        console.print("\n[bold blue]Result:[/bold blue]")
        console.print(result.content, markup=False, highlight=False)


@cli.command()
@click.argument('feed')
@click.argument('config_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--feed-id', default='1', help='Feed id the entries are given')
@click.option('--plugin', 'plugins', multiple=True, type=click.Choice(sorted(PLUGINS_BY_KEY)),
              help='Plugin to run (repeatable, default: all)')
@click.option('--limit', default=5, show_default=True, help='Entries to process')
@click.option('--show-content', is_flag=True, help='Print rewritten content')
@click.pass_context
def preview(ctx, feed, config_file, feed_id, plugins, limit, show_content):
    """Run the plugin chain over a feed's entries without storing anything.

    FEED is a feed URL or file; CONFIG_FILE is a JSON object of plugin
    configurations keyed by plugin name (replacer, inline_images, ...).
    """
    logger = get_logger_for_component("cli")
    config_data = _load_json(config_file)
    if not isinstance(config_data, dict):
        raise click.BadParameter("Configuration file must hold a JSON object")

    parsed = feedparser.parse(feed)
    if parsed.get("bozo") and not parsed.entries:
        console.print(f"[bold red]❌ Could not parse feed: {parsed.get('bozo_exception')}[/bold red]")
        sys.exit(1)

    feed_title = parsed.feed.get("title", "")
    console.print(f"[bold blue]📡 {feed_title or feed}[/bold blue] ({len(parsed.entries)} entries)")

    user_config = InMemoryUserConfiguration(config_data)
    extensions = build_extensions(user_config, ctx.obj['settings'], only=list(plugins) or None)
    hooks = register_extensions(HookManager(), extensions)

    table = Table(title="Preview")
    table.add_column("Title", style="cyan")
    table.add_column("Changed")
    table.add_column("Length")

    rewritten = []
    with PerformanceLogger(logger, "preview", feed=feed, entries=limit):
        for item in parsed.entries[:limit]:
            entry = entry_from_feedparser(item, feed_id, feed, feed_title)
            original = entry.content
            result = hooks.run_entry_before_insert(entry)

            if result is None:
                table.add_row(entry.title[:60], "[red]dropped[/red]", "-")
                continue

            changed = result.content != original
            table.add_row(
                result.title[:60],
                "[green]yes[/green]" if changed else "no",
                f"{len(original)} → {len(result.content)}",
            )
            rewritten.append(result)

    console.print(table)

    if show_content:
        for entry in rewritten:
            console.print(f"\n[bold]{entry.title}[/bold]")
            console.print(entry.content, markup=False, highlight=False)


def main():
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
