"""Per-invocation state passed to every command handler."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

import typer

from .config import Config, missing_git_error
from .dotfiles.repo import BareGitRepo
from .errors import InvalidOverrideError
from .paths import RepoPaths
from .pipeline import Pipeline, SubprocessPipeline
from .system import Environment
from .utils import is_program_available

logger = logging.getLogger(__name__)


def confirm(question: str) -> bool:
    """Ask the operator a yes/no question on the terminal."""
    return typer.confirm(question, default=False)


@dataclass
class InvocationContext:
    """Resolved paths, parsed flags and the change flag for one run.

    ``changes_possible`` starts False and is set by any handler that may
    have modified tracked content; the auto-maintenance step reads it once
    when the command has finished.
    """

    paths: RepoPaths
    environment: Environment = field(default_factory=Environment)
    work_tree_override: Optional[Path] = None
    force: bool = False
    list_only: bool = False
    list_all: bool = False
    changes_possible: bool = False
    prompt: Callable[[str], bool] = confirm
    pipeline: Pipeline = field(default_factory=SubprocessPipeline)
    _config: Optional[Config] = field(default=None, repr=False)

    @property
    def config(self) -> Config:
        if self._config is None:
            self._config = Config(self.paths.config)
            git_program = self._config.get("dotkeep.git-program")
            if git_program:
                self._config.git_program = git_program
        return self._config

    @property
    def git_program(self) -> str:
        return self.config.git_program

    def require_git(self) -> str:
        """Return the git program, failing if it cannot be located."""
        program = self.git_program
        if not is_program_available(program):
            raise missing_git_error(program)
        return program

    @property
    def gpg_program(self) -> str:
        return self.config.get("dotkeep.gpg-program") or "gpg"

    @property
    def work_tree(self) -> Path:
        """The directory tracked by the store.

        An explicit ``-w`` wins, then the store's own ``core.worktree``,
        then the home directory.
        """
        if self.work_tree_override is not None:
            if not self.work_tree_override.is_absolute():
                raise InvalidOverrideError(
                    "You must specify a fully qualified work tree"
                )
            return self.work_tree_override
        configured = BareGitRepo(
            self.paths.repo, self.environment.home, self.git_program
        ).configured_work_tree()
        return configured or self.environment.home

    @property
    def repo(self) -> BareGitRepo:
        return BareGitRepo(self.paths.repo, self.work_tree, self.git_program)
