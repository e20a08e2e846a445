"""
Tool Editor CLI Entry Point

Provides commands for editing, validating and scaffolding tool definitions.
"""

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax

from tooleditor.app import ToolEditorApp
from tooleditor.collaborators import FolderOwnershipChecker, check_folder_ownership
from tooleditor.config import (
    ConfigError,
    ConfigLoader,
    EditorConfig,
    expand_path,
    init_default_config,
)
from tooleditor.errors import EmptyDocumentError, ToolEditorError
from tooleditor.save import tool_from_json_buffer
from tooleditor.sync import WEATHER_EXAMPLE, example_document
from tooleditor.tool_fields import parse_json
from tooleditor.tool_types import (
    KnowledgeTool,
    Tool,
    ToolKind,
    dumps_json,
    tool_from_dict,
    tool_to_json,
)

EXAMPLE_KINDS = ("client", "knowledge", "webhook", "weather")
DEFAULT_LOG_FILE = "~/.tooleditor/tooleditor.log"


def _load_config(config_path: Path | None) -> EditorConfig:
    try:
        return ConfigLoader(user_config_path=config_path).load()
    except ConfigError as e:
        click.secho(f"✗ Configuration error: {e}", fg="red")
        sys.exit(1)


def _configure_logging(config: EditorConfig, log_file: Path | None = None) -> None:
    """Send logs to stderr, or to log_file while the TUI owns the terminal."""
    kwargs = {}
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        kwargs["filename"] = str(log_file)
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        **kwargs,
    )


def _load_tool(path: Path) -> Tool:
    """Parse a tool file for editing. Field checks wait for the editor's save."""
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        raise EmptyDocumentError("JSON cannot be empty")
    return tool_from_dict(parse_json(text))


def _validate_tool(path: Path, config: EditorConfig) -> Tool:
    """Run the JSON save checks on a file, including the folder ownership check."""
    tool = tool_from_json_buffer(path.read_text(encoding="utf-8"))
    if isinstance(tool, KnowledgeTool):
        checker = FolderOwnershipChecker(config.owned_folder_ids)
        asyncio.run(check_folder_ownership(checker, tool.document_folder_ids))
    return tool


@click.group(invoke_without_command=True)
@click.version_option(version="0.1.0", prog_name="tooleditor")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Tool Editor - build client, knowledge and webhook tools

    Run 'tooleditor' to open the editor.
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(edit)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    help="Path to config file",
)
@click.option(
    "--tool",
    "-t",
    "tool_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Tool JSON file to open for editing",
)
@click.option(
    "--kind",
    "-k",
    type=click.Choice(sorted(ConfigLoader.EDITABLE_KINDS)),
    help="Kind of the new tool (ignored with --tool)",
)
def edit(config: Path | None = None, tool_path: Path | None = None, kind: str | None = None) -> None:
    """Open the tool editor.

    Tools saved during the session are printed as JSON on exit.
    """
    app_config = _load_config(config)
    _configure_logging(app_config, expand_path(DEFAULT_LOG_FILE))

    tool = None
    if tool_path is not None:
        try:
            tool = _load_tool(tool_path)
        except ToolEditorError as e:
            click.secho(f"✗ Cannot open {tool_path}: {e.message}", fg="red")
            sys.exit(1)

    if kind is not None and tool is None:
        app_config.default_tool_kind = kind

    app = ToolEditorApp(config=app_config, initial_tool=tool, open_on_start=True)
    try:
        app.run()
    except Exception as e:
        click.secho(f"✗ Failed to launch editor: {e}", fg="red")
        sys.exit(1)

    for saved in app.store.tools.values():
        click.echo(tool_to_json(saved, indent=app_config.json_indent))


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    help="Path to config file",
)
def validate(file: Path, config: Path | None) -> None:
    """Validate a tool JSON file.

    Runs the same checks as saving from the JSON editor.
    """
    app_config = _load_config(config)
    _configure_logging(app_config)
    console = Console()

    try:
        tool = _validate_tool(file, app_config)
    except ToolEditorError as e:
        console.print(f"[red]✗ {e.kind.value}:[/red] {escape(e.message)}")
        sys.exit(1)

    console.print(f"[green]✓ Valid {tool.kind.label.lower()} tool:[/green] {escape(tool.name)}")
    console.print(Syntax(tool_to_json(tool, indent=app_config.json_indent), "json"))


@cli.command()
@click.argument("kind", type=click.Choice(EXAMPLE_KINDS))
def example(kind: str) -> None:
    """Print an example tool document.

    'weather' prints the complete webhook example.
    """
    document = WEATHER_EXAMPLE if kind == "weather" else example_document(ToolKind(kind))
    click.echo(dumps_json(document))


@cli.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output path for config file (defaults to ~/.tooleditor/config.yaml)",
)
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite an existing config file",
)
def init(output: Path | None, force: bool) -> None:
    """Write a default configuration file."""
    target = expand_path(output or ConfigLoader.DEFAULT_USER_CONFIG_PATH)
    if target.exists() and not force:
        click.secho(f"✓ Configuration already exists at: {target}", fg="green")
        click.echo()
        click.echo("To overwrite it, use:")
        click.echo("  tooleditor init --force")
        return

    path = init_default_config(target)
    click.secho(f"✓ Wrote default configuration to {path}", fg="green")


def main() -> None:
    """Main entry point for the CLI"""
    cli()


if __name__ == "__main__":
    main()
