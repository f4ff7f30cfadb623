"""Config commands for threadpress CLI."""

from pathlib import Path

import typer

from threadpress.config import ConfigError, get_config_dir, load_config

app = typer.Typer(
    name="config",
    help="Inspect threadpress configuration.",
)


def default_config_path() -> Path:
    return get_config_dir() / "config.toml"


@app.command()
def show(
    config_path: Path | None = typer.Option(
        None, "--config", "-c", help="Path to config.toml."
    ),
) -> None:
    """Show the effective configuration."""
    path = config_path or default_config_path()
    config = load_config(path)
    typer.echo(f"config_file: {path}{'' if path.exists() else ' (missing, using defaults)'}")
    typer.echo(f"site.title: {config.site.title}")
    typer.echo(f"site.base_url: {config.site.base_url or '-'}")
    typer.echo(f"site.output_dir: {config.site.output_dir}")
    typer.echo(f"site.templates_dir: {config.site.templates_dir or '(built-in)'}")
    typer.echo(f"publish.publisher_role_ids: {', '.join(config.publish.publisher_role_ids) or '-'}")
    typer.echo(f"publish.publish_emoji: {config.publish.publish_emoji or '-'}")
    typer.echo(f"publish.answer_emoji: {config.publish.answer_emoji or '-'}")
    typer.echo(f"build.index_debounce_seconds: {config.build.index_debounce_seconds}")


@app.command()
def check(
    config_path: Path | None = typer.Option(
        None, "--config", "-c", help="Path to config.toml."
    ),
) -> None:
    """Validate that publishing settings are complete."""
    config = load_config(config_path or default_config_path())
    try:
        config.require_publishing()
    except ConfigError as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(1) from e
    typer.echo("Configuration OK.")
