"""Removing group/other access from sensitive files."""

import glob
import logging
import os
import stat
from pathlib import Path
from typing import List

from .context import InvocationContext
from .encryption import expand_manifest

logger = logging.getLogger(__name__)

SSH_DIR = ".ssh"
GNUPG_DIR = ".gnupg"

GROUP_OTHER_BITS = stat.S_IRWXG | stat.S_IRWXO


def _directory_and_contents(work_tree: Path, name: str) -> List[str]:
    pattern = os.path.join(glob.escape(name), "*")
    return [name] + sorted(glob.glob(pattern, root_dir=str(work_tree)))


def sensitive_paths(context: InvocationContext) -> List[str]:
    """Collect the paths whose permissions should be restricted.

    Paths are relative to the work tree unless absolute (the archive may
    live outside it). Duplicates across sources are kept.
    """
    work_tree = context.work_tree
    config = context.config
    paths: List[str] = []

    archive = context.paths.archive
    if archive.exists():
        paths.append(str(archive))

    if config.get_bool("dotkeep.ssh-perms") is not False:
        paths.extend(_directory_and_contents(work_tree, SSH_DIR))

    if config.get_bool("dotkeep.gpg-perms") is not False:
        paths.extend(_directory_and_contents(work_tree, GNUPG_DIR))

    if context.paths.encrypt.is_file():
        paths.extend(expand_manifest(context.paths.encrypt, work_tree))

    return paths


def restrict(path: Path) -> None:
    """Strip group and other permission bits (``chmod go-rwx``)."""
    mode = stat.S_IMODE(path.stat().st_mode)
    path.chmod(mode & ~GROUP_OTHER_BITS)


def update_permissions(context: InvocationContext) -> List[Path]:
    """Restrict every sensitive path that exists.

    Missing paths are skipped. The returned list is every path chmod was
    applied to, not only those whose mode actually changed.
    """
    work_tree = context.work_tree
    if not work_tree.is_dir():
        logger.debug(f"Perms not processed, unable to cd into {work_tree}")
        return []

    processed = []
    for name in sensitive_paths(context):
        path = work_tree / name
        if not path.exists():
            continue
        logger.debug(f"Restricting permissions of {path}")
        restrict(path)
        processed.append(path)
    return processed
