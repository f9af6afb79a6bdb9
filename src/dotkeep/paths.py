"""Resolution of the dotkeep store, settings, manifest and archive paths."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .errors import InvalidOverrideError

logger = logging.getLogger(__name__)

DEFAULT_DIR_NAME = ".dotkeep"

REPO_NAME = "repo.git"
CONFIG_NAME = "config"
ENCRYPT_NAME = "encrypt"
ARCHIVE_NAME = "files.gpg"

PathLike = Union[str, Path]


@dataclass(frozen=True)
class RepoPaths:
    """The four artifact locations used by one invocation."""

    base: Path
    repo: Path
    config: Path
    encrypt: Path
    archive: Path


def _absolute_override(name: str, value: Optional[PathLike]) -> Optional[Path]:
    if value is None or value == "":
        return None
    path = Path(value).expanduser()
    if not path.is_absolute():
        raise InvalidOverrideError(
            f"You must specify a fully qualified {name} path"
        )
    return path


def resolve_paths(
    home: Path,
    base: Optional[PathLike] = None,
    repo: Optional[PathLike] = None,
    config: Optional[PathLike] = None,
    encrypt: Optional[PathLike] = None,
    archive: Optional[PathLike] = None,
) -> RepoPaths:
    """Compute absolute artifact paths from a base directory and overrides.

    Every artifact defaults to ``<base>/<standard-name>``, where ``base``
    defaults to ``~/.dotkeep``. Overrides must be absolute paths; a relative
    override raises :class:`InvalidOverrideError` before anything is
    touched on disk.
    """
    base_dir = _absolute_override("dir", base) or (home / DEFAULT_DIR_NAME)

    return RepoPaths(
        base=base_dir,
        repo=_absolute_override("repo", repo) or base_dir / REPO_NAME,
        config=_absolute_override("config", config) or base_dir / CONFIG_NAME,
        encrypt=(
            _absolute_override("encrypt", encrypt) or base_dir / ENCRYPT_NAME
        ),
        archive=(
            _absolute_override("archive", archive) or base_dir / ARCHIVE_NAME
        ),
    )


def export_repo(paths: RepoPaths) -> None:
    """Point every git invocation in this process at the dotkeep store."""
    logger.debug(f"Exporting GIT_DIR={paths.repo}")
    os.environ["GIT_DIR"] = str(paths.repo)
