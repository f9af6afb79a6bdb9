"""dotkeep CLI - command-line interface for dotfiles management."""

import subprocess
from typing import List, Optional

import typer

from ..context import InvocationContext
from ..errors import DotkeepError
from ..maintenance import run_auto_maintenance
from ..paths import export_repo, resolve_paths
from ..system import Environment
from ..utils import get_subprocess_error, setup_logging
from .commands import dispatch

app = typer.Typer(
    name="dotkeep",
    help="Manage dotfiles in a git repository whose work tree is $HOME.",
    add_completion=False,
)


@app.command(
    no_args_is_help=True,
    context_settings={
        "allow_interspersed_args": False,
        "ignore_unknown_options": True,
        "allow_extra_args": True,
    },
)
def run(
    command: str = typer.Argument(
        ..., help="dotkeep command, or any git command to pass through."
    ),
    args: Optional[List[str]] = typer.Argument(
        None, help="Arguments for the command."
    ),
    debug: bool = typer.Option(
        False, "--debug", "-d", help="Enable debug logging output."
    ),
    base_dir: Optional[str] = typer.Option(
        None, "--dir", "-Y", help="Absolute path of the dotkeep directory."
    ),
    repo: Optional[str] = typer.Option(
        None, "--repo", help="Absolute path of the git repository."
    ),
    config: Optional[str] = typer.Option(
        None, "--config", help="Absolute path of the settings file."
    ),
    encrypt: Optional[str] = typer.Option(
        None, "--encrypt", help="Absolute path of the encrypt manifest."
    ),
    archive: Optional[str] = typer.Option(
        None, "--archive", help="Absolute path of the encrypted archive."
    ),
):
    """Manage dotfiles in a git repository whose work tree is $HOME.

    Examples:
        dotkeep clone https://example.com/me/dotfiles.git
        dotkeep alt
        dotkeep encrypt
        dotkeep status        # passed through to git
    """
    setup_logging(verbose=debug)

    try:
        env = Environment()
        paths = resolve_paths(
            env.home,
            base=base_dir,
            repo=repo,
            config=config,
            encrypt=encrypt,
            archive=archive,
        )
        export_repo(paths)
        context = InvocationContext(paths=paths, environment=env)
        status = dispatch(context, command, list(args or []))
    except DotkeepError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(1)
    except subprocess.CalledProcessError as e:
        typer.echo(f"ERROR: {get_subprocess_error(e)}", err=True)
        raise typer.Exit(1)
    except FileNotFoundError as e:
        typer.echo(f"ERROR: Unable to run {e.filename}: {e.strerror}", err=True)
        raise typer.Exit(1)

    run_auto_maintenance(context)

    if status:
        raise typer.Exit(status)


def main():
    """Main entry point for the dotkeep CLI."""
    app()
