"""Configuration file commands."""

import typer

from cli.config import get_config_path, init_config, load_config, validate_config
from cli.output import error_message, render_yaml, success_message
from schemascope.database.engine import sanitize_connection_string

app = typer.Typer(help="Manage the schemascope configuration file")


@app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file"),
) -> None:
    """Create a config file with default settings."""
    try:
        path = init_config(force=force)
        success_message(f"Config written to {path}")
    except FileExistsError as e:
        error_message(str(e), hint="Use --force to overwrite it")
        raise typer.Exit(1) from e


@app.command("show")
def config_show() -> None:
    """Print the effective configuration with passwords masked."""
    try:
        config = load_config()
    except ValueError as e:
        error_message(str(e))
        raise typer.Exit(1) from e

    data = config.model_dump()
    data["connections"] = {name: sanitize_connection_string(url) for name, url in config.connections.items()}
    typer.echo(f"# {get_config_path()}")
    typer.echo(render_yaml(data))


@app.command("validate")
def config_validate() -> None:
    """Check the config file for errors."""
    try:
        config = load_config()
    except ValueError as e:
        error_message(str(e))
        raise typer.Exit(1) from e

    errors = validate_config(config)
    if errors:
        for message in errors:
            error_message(message)
        raise typer.Exit(1)
    success_message(f"{get_config_path()} is valid")
