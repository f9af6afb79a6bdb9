"""Utility helpers shared across dotkeep."""

import logging
import shutil
import subprocess
import sys
from importlib.metadata import PackageNotFoundError, version


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for a CLI invocation.

    Debug output is only shown when ``verbose`` is set; otherwise only
    warnings and errors reach stderr.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def is_program_available(program: str) -> bool:
    """Check if a program is installed and on the PATH."""
    return shutil.which(program) is not None


def get_version() -> str:
    """Return the installed package version."""
    try:
        return version("dotkeep")
    except PackageNotFoundError:
        return "0.0.0"


def get_subprocess_error(e: subprocess.CalledProcessError) -> str:
    """Extract error message from CalledProcessError.

    Handles both string and bytes stderr, returning a clean string.
    """
    stderr = getattr(e, "stderr", "") or ""
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    return stderr.strip() or str(e)
