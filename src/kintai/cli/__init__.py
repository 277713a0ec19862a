"""
Kintai CLI.

- start:  run the Discord bot and its liveness server
- doctor: check tokens, credentials and the organization mapping
"""

import typer

from kintai.cli.main import configure_logging, load_environment, register_commands

app = typer.Typer(help="Kintai CLI - chat-driven time tracking")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging (DEBUG level)"
    ),
):
    """
    Kintai CLI - chat-driven time tracking.
    """
    configure_logging(verbose)
    load_environment()


register_commands(app)

if __name__ == "__main__":
    app()
