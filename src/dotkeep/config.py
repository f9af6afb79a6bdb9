"""Access to dotkeep's own settings file.

The settings file is a git-config style INI file. Reads and writes go
through ``git config --file`` so that section ordering and neighbouring
keys are preserved exactly the way git rewrites them; nothing here ever
edits the file text directly, and global/system git configuration is
never consulted.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from .errors import PrerequisiteError

logger = logging.getLogger(__name__)

# Settings dotkeep itself understands, shown by ``dotkeep config``.
KNOWN_KEYS: List[str] = [
    "dotkeep.auto-alt",
    "dotkeep.auto-perms",
    "dotkeep.ssh-perms",
    "dotkeep.gpg-perms",
    "dotkeep.gpg-recipient",
    "dotkeep.gpg-program",
    "dotkeep.git-program",
]


def missing_git_error(program: str) -> PrerequisiteError:
    return PrerequisiteError(
        "This functionality requires git to be installed, but the "
        f"command '{program}' cannot be located."
    )


class Config:
    """Scoped key-value settings backed by a single file."""

    def __init__(self, config_path: Path, git_program: str = "git"):
        self.path = Path(config_path)
        self.git_program = git_program

    def _git_config(
        self, *args: str, check: bool = False
    ) -> subprocess.CompletedProcess:
        cmd = [self.git_program, "config", "--file", str(self.path)]
        cmd.extend(args)
        try:
            return subprocess.run(
                cmd, capture_output=True, text=True, check=check
            )
        except FileNotFoundError as e:
            raise missing_git_error(self.git_program) from e

    def get(self, key: str) -> str:
        """Get a value, or an empty string when the key is unset."""
        if not self.path.exists():
            return ""
        result = self._git_config("--get", key)
        if result.returncode != 0:
            return ""
        return result.stdout.rstrip("\n")

    def get_bool(self, key: str) -> Optional[bool]:
        """Get a boolean setting.

        Returns True or False when the key is set to something git can
        read as a boolean, and None when it is absent or unreadable.
        """
        if not self.path.exists():
            return None
        result = self._git_config("--bool", "--get", key)
        if result.returncode != 0:
            if result.stderr.strip():
                logger.debug(f"Ignoring {key}: {result.stderr.strip()}")
            return None
        value = result.stdout.strip()
        if value == "true":
            return True
        if value == "false":
            return False
        return None

    def set(self, key: str, value: str) -> bool:
        """Set a value, creating the settings file if needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        result = self._git_config(key, value)
        if result.returncode != 0:
            logger.warning(
                f"Could not set {key} in {self.path}: "
                f"{result.stderr.strip()}"
            )
            return False
        return True

    def run(self, args: List[str]) -> int:
        """Run ``git config --file <settings>`` with arbitrary arguments.

        Output is not captured; the exit status of git is returned.
        """
        if args and not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        cmd = [self.git_program, "config", "--file", str(self.path)]
        cmd.extend(args)
        try:
            return subprocess.run(cmd).returncode
        except FileNotFoundError as e:
            raise missing_git_error(self.git_program) from e
