"""Command handlers and the verb registry.

Every handler takes the invocation context and the remaining arguments
and returns an exit status. Verbs that are not in the registry are
handed to git unchanged.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List

import typer

from ..alternates import update_alternates
from ..config import KNOWN_KEYS
from ..context import InvocationContext
from ..dotfiles import clone_repo, init_repo
from ..encryption import decrypt, encrypt
from ..errors import DotkeepError, RepositoryError
from ..perms import update_permissions
from ..utils import get_version, setup_logging

logger = logging.getLogger(__name__)

Handler = Callable[[InvocationContext, List[str]], int]

USAGE = """\
Usage: dotkeep <command> [options...]

Manage dotfiles maintained in a git repository. Commands not listed
below are passed directly to git.

Commands:
  dotkeep init [-f] [-w DIR]         - Initialize an empty repository
  dotkeep clone [-f] [-w DIR] <url>  - Clone an existing repository
  dotkeep config <name> [<value>]    - Configure a setting
  dotkeep list [-a]                  - List tracked files
  dotkeep alt                        - Create links for alternates
  dotkeep encrypt                    - Encrypt files
  dotkeep decrypt [-l]               - Decrypt files
  dotkeep perms                      - Fix perms for private files
  dotkeep version                    - Print the version

Files:
  ~/.dotkeep/config    - dotkeep's configuration file
  ~/.dotkeep/repo.git  - dotkeep's git repository
  ~/.dotkeep/encrypt   - List of globs used for encrypt/decrypt
  ~/.dotkeep/files.gpg - Encrypted data stored here
"""

CONFIG_HELP = """\
Please read the CONFIGURATION section of the documentation for
details about these settings:
"""


@dataclass(frozen=True)
class Command:
    handler: Handler
    parse_flags: bool = True
    needs_git: bool = True


def parse_flags(context: InvocationContext, args: List[str]) -> List[str]:
    """Consume the flags dotkeep's own commands understand.

    ``-f`` (force), ``-l`` (list only), ``-a`` (all), ``-d`` (debug) and
    ``-w DIR`` (work tree) are recorded on the context; anything else is
    returned as a positional argument.
    """
    remaining: List[str] = []
    args_iter = iter(args)
    for arg in args_iter:
        if arg == "-f":
            context.force = True
        elif arg == "-l":
            context.list_only = True
        elif arg == "-a":
            context.list_all = True
        elif arg == "-d":
            setup_logging(verbose=True)
        elif arg == "-w":
            value = next(args_iter, None)
            if value is None:
                raise DotkeepError("-w requires a directory argument")
            context.work_tree_override = Path(value).expanduser()
        else:
            remaining.append(arg)
    return remaining


def require_repo(context: InvocationContext) -> None:
    if not context.paths.repo.is_dir():
        raise RepositoryError(
            f"Git repo does not exist. [{context.paths.repo}]\n"
            "Did you forget to run 'init' or 'clone'?"
        )


def alt(context: InvocationContext, args: List[str]) -> int:
    require_repo(context)
    update_alternates(context, loud=True)
    return 0


def clone(context: InvocationContext, args: List[str]) -> int:
    if not args:
        raise DotkeepError("No repository URL was given to clone")
    clone_repo(context, args[0])
    return 0


def config(context: InvocationContext, args: List[str]) -> int:
    if not args:
        typer.echo(CONFIG_HELP)
        for key in KNOWN_KEYS:
            typer.echo(f"  {key}")
        return 0
    return context.config.run(args)


def decrypt_command(context: InvocationContext, args: List[str]) -> int:
    decrypt(context, list_only=context.list_only)
    return 0


def encrypt_command(context: InvocationContext, args: List[str]) -> int:
    encrypt(context)
    return 0


def help_command(context: InvocationContext, args: List[str]) -> int:
    typer.echo(USAGE)
    return 0


def init(context: InvocationContext, args: List[str]) -> int:
    init_repo(context)
    return 0


def list_command(context: InvocationContext, args: List[str]) -> int:
    """Print tracked files, relative to the current directory if possible."""
    require_repo(context)
    repo = context.repo
    cwd = repo.work_tree
    if not context.list_all:
        here = Path.cwd()
        if here == repo.work_tree or repo.work_tree in here.parents:
            cwd = here
    result = repo.run("ls-files", check=False, cwd=cwd)
    if result.stdout:
        typer.echo(result.stdout, nl=False)
    return result.returncode


def perms(context: InvocationContext, args: List[str]) -> int:
    update_permissions(context)
    return 0


def version(context: InvocationContext, args: List[str]) -> int:
    typer.echo(f"dotkeep {get_version()}")
    return 0


def passthrough(context: InvocationContext, args: List[str]) -> int:
    """Run any other command as git against the dotkeep repository."""
    require_repo(context)
    context.changes_possible = True
    return context.repo.passthrough(args)


COMMANDS: Dict[str, Command] = {
    "alt": Command(alt),
    "clone": Command(clone),
    "config": Command(config, parse_flags=False),
    "decrypt": Command(decrypt_command),
    "encrypt": Command(encrypt_command),
    "help": Command(help_command, needs_git=False),
    "init": Command(init),
    "list": Command(list_command),
    "perms": Command(perms),
    "version": Command(version, needs_git=False),
}


def dispatch(
    context: InvocationContext, verb: str, args: List[str]
) -> int:
    """Run ``verb`` through its handler, or pass it through to git."""
    command = COMMANDS.get(verb)
    if command is None or command.needs_git:
        context.require_git()
    if command is None:
        logger.debug(f"Passing '{verb}' through to git")
        return passthrough(context, [verb] + list(args))
    if command.parse_flags:
        args = parse_flags(context, args)
    return command.handler(context, args)
