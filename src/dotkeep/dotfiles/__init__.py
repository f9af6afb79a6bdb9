"""Dotfiles repository package."""

from .operations import choose_branch, clone_repo, init_repo
from .repo import BareGitRepo

__all__ = [
    "BareGitRepo",
    "choose_branch",
    "clone_repo",
    "init_repo",
]
