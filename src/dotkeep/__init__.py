"""dotkeep - dotfiles in a bare git repository, with alternates and encryption."""

from .cli import main
from .config import Config
from .context import InvocationContext
from .dotfiles import BareGitRepo
from .paths import RepoPaths, resolve_paths
from .system import Environment
from .utils import get_version

__all__ = [
    "BareGitRepo",
    "Config",
    "Environment",
    "InvocationContext",
    "RepoPaths",
    "get_version",
    "main",
    "resolve_paths",
]
