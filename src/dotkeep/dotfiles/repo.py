"""Thin wrapper around git for a bare store with a separate work tree."""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class BareGitRepo:
    """Runs git against a bare repository whose work tree lives elsewhere.

    This implements the "bare repo" pattern for dotfiles:
    - The git history is stored in a bare directory (e.g. ~/.dotkeep/repo.git)
    - The work tree is the user's home directory
    - Nothing in the work tree needs a .git directory
    """

    def __init__(
        self,
        git_dir: Path,
        work_tree: Path,
        git_program: str = "git",
    ):
        self.git_dir = Path(git_dir)
        self.work_tree = Path(work_tree)
        self.git_program = git_program

    def exists(self) -> bool:
        return self.git_dir.is_dir()

    def run(
        self,
        *args: str,
        check: bool = True,
        cwd: Optional[Path] = None,
    ) -> subprocess.CompletedProcess:
        """Run a git command with --git-dir and --work-tree set.

        Args:
            *args: Git command arguments (e.g., "ls-files")
            check: If True, raise on non-zero exit code
            cwd: Directory to run in (defaults to the work tree)

        Returns:
            CompletedProcess with stdout/stderr captured as text
        """
        cmd = [
            self.git_program,
            "--git-dir",
            str(self.git_dir),
            "--work-tree",
            str(self.work_tree),
        ] + list(args)
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=check,
            cwd=str(cwd or self.work_tree),
        )

    def run_bare(
        self, *args: str, check: bool = True
    ) -> subprocess.CompletedProcess:
        """Run a git command with just --git-dir (no work tree)."""
        cmd = [self.git_program, "--git-dir", str(self.git_dir)] + list(args)
        return subprocess.run(cmd, capture_output=True, text=True, check=check)

    def passthrough(self, args: Sequence[str]) -> int:
        """Run git with inherited stdio and return its exit status."""
        cmd = [
            self.git_program,
            "--git-dir",
            str(self.git_dir),
            "--work-tree",
            str(self.work_tree),
        ] + list(args)
        logger.debug(f"Passing through: {cmd}")
        return subprocess.run(cmd).returncode

    def init_bare(self) -> None:
        """Create the bare store, readable only by its owner."""
        logger.debug(f"Creating bare repository at {self.git_dir}")
        subprocess.run(
            [
                self.git_program,
                "init",
                "--shared=0600",
                "--bare",
                str(self.git_dir),
            ],
            check=True,
            capture_output=True,
            text=True,
        )

    def remove(self) -> None:
        logger.debug(f"Removing repository {self.git_dir}")
        shutil.rmtree(self.git_dir, ignore_errors=True)

    def configure(self) -> None:
        """Configure the store to operate on the work tree."""
        self.run_bare("config", "core.bare", "false")
        self.run_bare("config", "core.worktree", str(self.work_tree))
        self.run_bare("config", "status.showUntrackedFiles", "no")
        self.run_bare("config", "dotkeep.managed", "true")

    def configured_work_tree(self) -> Optional[Path]:
        """Return the work tree recorded in the store, if any."""
        if not self.exists():
            return None
        result = self.run_bare("config", "core.worktree", check=False)
        value = result.stdout.strip()
        if result.returncode != 0 or not value:
            return None
        return Path(value)

    def tracked_files(self) -> List[str]:
        """List paths tracked by the store, relative to the work tree.

        The list is recomputed on every call.
        """
        result = self.run("ls-files", "-z", check=False)
        if result.returncode != 0:
            logger.debug(f"git ls-files failed: {result.stderr.strip()}")
            return []
        names = [name for name in result.stdout.split("\0") if name]
        return list(dict.fromkeys(names))

    def is_tracked(self, path: Path) -> bool:
        result = self.run(
            "ls-files", "--error-unmatch", str(path), check=False
        )
        return result.returncode == 0

    def add(self, path: Path) -> None:
        self.run("add", str(path))

    def remote_branches(self) -> List[str]:
        """Branch names available under refs/remotes/origin."""
        result = self.run_bare(
            "for-each-ref",
            "--format=%(refname:short)",
            "refs/remotes/origin/",
            check=False,
        )
        branches = []
        for line in result.stdout.splitlines():
            branch = line.strip()
            if not branch or branch.endswith("/HEAD"):
                continue
            if branch.startswith("origin/"):
                branch = branch[len("origin/"):]
            branches.append(branch)
        return sorted(branches)
