"""
Top-level CLI commands: start, doctor.
"""

import json
import os
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from kintai.config import OrgDirectory, Settings


def configure_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    from kintai.logger import setup_logging

    log_level = "DEBUG" if verbose else "WARNING"
    setup_logging(level=log_level)


def load_environment():
    """Load settings overrides from a ``.env`` file in the working directory."""
    from dotenv import load_dotenv

    load_dotenv(Path.cwd() / ".env")


def run_checks(settings: Settings) -> dict:
    """Check the settings the bot needs before it can handle commands."""
    checks = {}

    checks["discord token"] = "ok" if settings.discord_token else "missing"

    if Path(settings.credentials_path).is_file():
        checks["google credentials"] = "ok"
    else:
        checks["google credentials"] = f"not found: {settings.credentials_path}"

    try:
        directory = OrgDirectory.from_file(settings.org_conf_path)
        checks["organizations"] = f"ok ({len(directory)} configured)"
    except FileNotFoundError:
        checks["organizations"] = f"not found: {settings.org_conf_path}"
    except (json.JSONDecodeError, ValidationError, AttributeError) as e:
        checks["organizations"] = f"invalid: {e}"

    return checks


def register_commands(app: typer.Typer):
    """Register top-level commands onto the app."""

    @app.command()
    def start(
        port: Optional[int] = typer.Option(None, help="Port for the liveness server"),
        debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    ):
        """Start the Kintai bot."""
        from kintai.server import main as run_server

        if debug:
            os.environ["LOG_LEVEL"] = "DEBUG"

        settings = Settings.from_env()
        if port is not None:
            settings = settings.model_copy(update={"port": port})

        typer.echo(f"🚀 Starting Kintai on port {settings.port}...")
        run_server(settings)

    @app.command()
    def doctor():
        """Check that the bot is configured correctly."""
        typer.echo("🩺 Checking configuration...")

        checks = run_checks(Settings.from_env())
        all_ok = True
        for name, status in checks.items():
            ok = status.startswith("ok")
            all_ok = all_ok and ok
            typer.echo(f"  {'✅' if ok else '❌'} {name}: {status}")

        if not all_ok:
            raise typer.Exit(code=1)
        typer.echo("\n✨ All checks passed.")
