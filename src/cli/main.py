"""CLI commands for Orbit."""

import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from cli.commands import facts
from cli.config import load_config_model
from cli.logging_config import setup_logging
from cli.utils import get_components

console = Console()

_STATUS_STYLES = {"Success": "green", "Failed": "red", "Suggestion": "yellow"}


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Orbit - conversational habit tracker."""
    try:
        config = load_config_model()
    except ValueError as e:
        raise click.ClickException(str(e))
    setup_logging(
        json_mode=config.logging.json_mode,
        level="DEBUG" if verbose else config.logging.level,
        log_file=config.paths.log_file,
    )
    ctx.ensure_object(dict)["config"] = config


cli.add_command(facts)


@cli.command("init-db")
@click.pass_obj
def init_db(obj: dict):
    """Create the sqlite schema."""
    c = get_components(skip_llm=True, config=obj["config"])
    console.print(f"[green]Database ready:[/] {c['config'].paths.db}")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=8000, type=int, help="Bind port")
def serve(host: str, port: int):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("web.app:app", host=host, port=port, log_config=None)


@cli.command()
@click.argument("user_id")
@click.argument("message", required=False, default="")
@click.option("--image", "image_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def chat(obj: dict, user_id: str, message: str, image_path: Path | None):
    """Run one chat turn for USER_ID and show what was done."""
    from chat.interpreter import InterpretationError
    from llm.base import LLMError
    from web.images import ImageValidationError, validate_image

    if not message.strip() and image_path is None:
        raise click.UsageError("Provide a MESSAGE or --image.")

    try:
        c = get_components(config=obj["config"])
    except LLMError as e:
        raise click.ClickException(f"LLM not configured: {e}")

    image = mime = None
    if image_path is not None:
        image = image_path.read_bytes()
        try:
            mime = validate_image(image, image_path.name, c["config"].chat)
        except ImageValidationError as e:
            raise click.ClickException(str(e))

    c["store"].ensure_user(user_id)
    try:
        response = asyncio.run(c["orchestrator"].process(user_id, message, image, mime))
    except InterpretationError as e:
        raise click.ClickException(str(e))

    if response.ai_message:
        console.print(f"[bold]Orbit:[/] {response.ai_message}")
    if not response.results:
        return

    table = Table(title="Actions")
    table.add_column("#", width=3)
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Entity")
    table.add_column("Details")
    for i, result in enumerate(response.results, 1):
        style = _STATUS_STYLES.get(result.status.value, "white")
        details = result.error or ""
        if result.suggested_sub_habits:
            details = ", ".join(s.title or "?" for s in result.suggested_sub_habits)
        if result.conflict_warning:
            details = f"conflict ({result.conflict_warning.severity}): {result.conflict_warning.recommendation or ''}"
        table.add_row(
            str(i),
            result.type,
            f"[{style}]{result.status.value}[/]",
            result.entity_name or result.entity_id or "",
            details,
        )
    console.print(table)


if __name__ == "__main__":
    cli()
