"""threadpress CLI main entry point."""

import asyncio
import sys
from pathlib import Path

import httpx
import typer
from loguru import logger

from threadpress import __version__
from threadpress.build.index import build_index_page
from threadpress.build.templates import load_templates
from threadpress.cli import config as config_cli
from threadpress.cli.config import default_config_path
from threadpress.cli.listing import show_published
from threadpress.config import Config, load_config
from threadpress.gateway import StaticGateway
from threadpress.gateway.static import load_dump_file
from threadpress.models import PageMeta
from threadpress.publish.service import ThreadPublisher
from threadpress.storage.meta import MetadataStore

app = typer.Typer(
    name="threadpress",
    help="Render forum threads into a static HTML site.",
)

app.add_typer(config_cli.app, name="config")

CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Path to config.toml.")
OUTPUT_OPTION = typer.Option(None, "--output-dir", "-o", help="Site output directory.")


def _load(config_path: Path | None, output_dir: Path | None) -> Config:
    config = load_config(config_path or default_config_path())
    if output_dir is not None:
        config.site.output_dir = output_dir
    return config


async def render_dump_async(config: Config, dump_path: Path) -> PageMeta | None:
    """Render one thread from a dump file and refresh the index."""
    thread, gateway = load_dump_file(dump_path)
    async with httpx.AsyncClient(timeout=config.build.download_timeout) as client:
        publisher = ThreadPublisher(config, gateway, client)
        await publisher.start()
        meta = await publisher.generate(thread, notify=False)
        await publisher.flush()
    return meta


async def remove_thread_async(config: Config, thread_id: str) -> None:
    async with httpx.AsyncClient() as client:
        publisher = ThreadPublisher(config, StaticGateway(), client)
        await publisher.start()
        await publisher.remove(thread_id, notify=False)
        await publisher.flush()


@app.command()
def render(
    dump: Path = typer.Argument(..., help="Thread dump JSON file.", exists=True),
    output_dir: Path | None = OUTPUT_OPTION,
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """Render a thread dump into a page and update the index."""
    config = _load(config_path, output_dir)
    try:
        meta = asyncio.run(render_dump_async(config, dump))
    except (KeyError, ValueError) as e:
        typer.echo(f"Invalid thread dump {dump}: {e}", err=True)
        raise typer.Exit(1) from e
    if meta is None:
        typer.echo("Nothing rendered.", err=True)
        raise typer.Exit(1)
    typer.echo(f"Rendered {meta.title} -> {config.site.output_dir / meta.page_rel_path}")


@app.command()
def remove(
    thread_id: str = typer.Argument(..., help="Thread ID to unpublish."),
    output_dir: Path | None = OUTPUT_OPTION,
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """Remove a thread page and its assets."""
    config = _load(config_path, output_dir)
    asyncio.run(remove_thread_async(config, thread_id))
    typer.echo(f"Removed thread {thread_id}.")


@app.command(name="rebuild-index")
def rebuild_index(
    output_dir: Path | None = OUTPUT_OPTION,
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """Rebuild index.html from the sidecars on disk."""
    config = _load(config_path, output_dir)
    store = MetadataStore(config.site.output_dir)
    count = store.load()
    config.site.output_dir.mkdir(parents=True, exist_ok=True)
    path = build_index_page(
        config.site.output_dir,
        store.items(),
        load_templates(config.site.templates_dir),
        config.site,
    )
    typer.echo(f"Wrote {path} ({count} threads).")


@app.command(name="list")
def list_command(
    output_dir: Path | None = OUTPUT_OPTION,
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """List published threads."""
    config = _load(config_path, output_dir)
    show_published(config.site.output_dir)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
) -> None:
    """threadpress - Publish forum threads as static pages."""
    if version:
        typer.echo(f"threadpress version {__version__}")
        raise typer.Exit()
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


if __name__ == "__main__":
    app()
