"""Command line interface for filechat."""

from __future__ import annotations

import difflib
import locale
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from filechat.chat import ChatResponse, ChatRouter
from filechat.config import ConfigError, ConfigManager, FilechatConfig
from filechat.index.models import FileEntry
from filechat.index.watcher import IndexWatcher
from filechat.search.models import SearchResult

console = Console()
err_console = Console(stderr=True)

EXIT_WORDS = {"exit", "quit", ":q"}


def _configure_logging(level: str) -> None:
    """Route log records through rich on stderr at ``level``."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    root.addHandler(RichHandler(console=err_console, show_path=False, rich_tracebacks=True))
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))


def _parse_overrides(pairs: Sequence[str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected KEY=VALUE, got {pair!r}.", param_hint="--set")
        try:
            overrides[key.strip()] = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            message = f"Unable to parse {pair!r}: {exc}"
            raise click.BadParameter(message, param_hint="--set") from exc
    return overrides


def _load_config(ctx: click.Context) -> FilechatConfig:
    manager: ConfigManager = ctx.obj["manager"]
    try:
        config = manager.load(cli_overrides=ctx.obj["overrides"])
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    _configure_logging(config.logging.level)
    return config


def _build_router(ctx: click.Context) -> tuple[FilechatConfig, ChatRouter]:
    config = _load_config(ctx)
    return config, ChatRouter.from_config(config)


def _without_stamp(text: str) -> list[str]:
    return [line for line in text.splitlines() if not line.startswith("# Last updated:")]


def _results_table(results: list[SearchResult], *, title: str) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Summary")
    table.add_column("Path", overflow="fold")
    for position, result in enumerate(results, start=1):
        name = f"[bold]{result.name}[/bold]" if result.kind == "folder" else result.name
        table.add_row(str(position), name, result.summary, str(result.path.parent))
    return table


def _files_table(files: list[FileEntry], *, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Modified")
    table.add_column("Size", justify="right")
    for entry in files:
        table.add_row(
            entry.name,
            entry.extension,
            entry.modified_at.astimezone().strftime("%Y-%m-%d %H:%M"),
            f"{entry.size:,}",
        )
    return table


def _render_response(response: ChatResponse) -> None:
    style = "red" if response.error else "green"
    console.print(f"[{style}]{response.message}[/{style}]")
    if response.results:
        console.print(_results_table(response.results, title=f"Results ({response.mode})"))
    if response.files:
        console.print(_files_table(response.files, title="Recent files"))


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="filechat")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Use this configuration file instead of ~/.filechat/config.yaml.",
)
@click.option("--log-level", type=str, help="Override logging.level for this run.")
@click.option(
    "--set",
    "overrides",
    multiple=True,
    metavar="KEY=VALUE",
    help="Override a dotted configuration key for this run (repeatable).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    log_level: Optional[str],
    overrides: tuple[str, ...],
) -> None:
    """Find, summarize, and reorganize files by chatting about them."""
    ctx.ensure_object(dict)
    parsed = _parse_overrides(overrides)
    if log_level:
        parsed["logging.level"] = log_level
    ctx.obj["manager"] = ConfigManager(config_path)
    ctx.obj["overrides"] = parsed


@cli.command()
@click.option(
    "--folder",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Folder treated as open, for organize requests.",
)
@click.pass_context
def chat(ctx: click.Context, folder: Optional[Path]) -> None:
    """Start an interactive chat session."""
    resolved, router = _build_router(ctx)
    watcher: Optional[IndexWatcher] = None
    if resolved.index.watch:
        watcher = IndexWatcher(
            router.index.roots, router.index.handle_change, skip_dirs=resolved.index.skip_dirs
        )
        watcher.start()

    console.print("[bold]filechat[/bold]: ask me to find, list, organize, or collect files.")
    console.print("Type 'exit' to leave.")
    try:
        while True:
            try:
                message = console.input("[bold cyan]you>[/bold cyan] ")
            except (EOFError, KeyboardInterrupt):
                console.print()
                break
            if message.strip().lower() in EXIT_WORDS and router.active_session is None:
                break
            if not message.strip():
                continue
            _render_response(router.handle(message, current_folder=folder))
    finally:
        if watcher is not None:
            watcher.stop()


@cli.command()
@click.argument("query")
@click.option("--json", "json_output", is_flag=True, help="Emit results as JSON.")
@click.pass_context
def search(ctx: click.Context, query: str, json_output: bool) -> None:
    """Search the watched folders for QUERY."""
    _, router = _build_router(ctx)
    outcome = router.search(query)
    if json_output:
        console.print_json(data=outcome.model_dump(mode="json"))
        if outcome.error:
            raise SystemExit(1)
        return
    if outcome.error:
        raise click.ClickException(outcome.error)
    if not outcome.results:
        console.print("[yellow]No matching files found.[/yellow]")
        return
    console.print(_results_table(outcome.results, title=f"Results for {query!r} ({outcome.mode})"))


@cli.command()
@click.option("--type", "file_type", type=str, help="Only list files with this extension.")
@click.option("--json", "json_output", is_flag=True, help="Emit files as JSON.")
@click.pass_context
def recent(ctx: click.Context, file_type: Optional[str], json_output: bool) -> None:
    """List the most recently modified files."""
    _, router = _build_router(ctx)
    files = router.recent_files(file_type)
    if json_output:
        console.print_json(data={"files": [entry.model_dump(mode="json") for entry in files]})
        return
    if not files:
        console.print("[yellow]No recent files found.[/yellow]")
        return
    console.print(_files_table(files, title="Recent files"))


@cli.command()
@click.pass_context
def tree(ctx: click.Context) -> None:
    """Show the watched roots and their immediate subfolders."""
    _, router = _build_router(ctx)
    nodes = router.folder_tree()
    if not nodes:
        console.print("[yellow]None of the watched folders exist.[/yellow]")
        return
    for node in nodes:
        branch = Tree(f"[bold]{node.name}[/bold] [dim]{node.path}[/dim]")
        for child in node.children or []:
            branch.add(child.name)
        console.print(branch)


@cli.group()
def config() -> None:
    """Manage filechat configuration."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.pass_context
def config_view(ctx: click.Context, no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    manager: ConfigManager = ctx.obj["manager"]
    try:
        resolved = manager.load(cli_overrides=ctx.obj["overrides"], include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(resolved.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY."""
    manager: ConfigManager = ctx.obj["manager"]
    try:
        manager.ensure_exists()
        parsed: Any = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    before = _without_stamp(manager.read_text())
    try:
        manager.set_value(key, parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    after = _without_stamp(manager.read_text())

    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {key}.[/green]")


def main() -> None:
    """Invoke the click CLI as the console script entry point."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error:
        # unsupported LANG/LC_ALL; folder names then sort by casefolded code point
        pass
    cli()


if __name__ == "__main__":
    main()
