"""Creating and cloning dotkeep repositories."""

from __future__ import annotations

import logging
import subprocess
from typing import TYPE_CHECKING, List, Optional

import typer

from ..errors import RepositoryError
from ..utils import get_subprocess_error
from .repo import BareGitRepo

if TYPE_CHECKING:
    from ..context import InvocationContext

logger = logging.getLogger(__name__)

MERGE_FAILED_NOTICE = """\
**NOTE**
  Merging origin/{branch} failed.
  dotkeep did 'reset origin/{branch}' instead.

  This likely happened because you had files in your
  work tree which conflict with files tracked by origin/{branch}.

  Please review and resolve any differences appropriately.
  If you know what you're doing, and want to overwrite the
  tracked files, consider 'dotkeep reset --hard origin/{branch}'
"""


def _prepare_store(context: InvocationContext) -> BareGitRepo:
    """Create an empty, configured store, replacing one if forced."""
    repo = context.repo
    if not repo.work_tree.is_dir():
        raise RepositoryError(f"Work tree does not exist: {repo.work_tree}")
    if repo.exists():
        if not context.force:
            raise RepositoryError(
                f"Git repo already exists. [{repo.git_dir}]\n"
                "Use '-f' if you want to force it to be overwritten."
            )
        repo.remove()

    repo.git_dir.parent.mkdir(parents=True, exist_ok=True)
    try:
        repo.init_bare()
        repo.configure()
    except subprocess.CalledProcessError as e:
        raise RepositoryError(
            f"Unable to create repository: {get_subprocess_error(e)}"
        ) from e
    return repo


def init_repo(context: InvocationContext) -> BareGitRepo:
    """Create a new, empty repository tracking the work tree."""
    repo = _prepare_store(context)
    logger.debug(f"Initialized {repo.git_dir} for {repo.work_tree}")
    context.changes_possible = True
    return repo


def choose_branch(available: List[str]) -> Optional[str]:
    """Pick the branch to check out from the fetched remote branches."""
    for preferred in ("master", "main"):
        if preferred in available:
            return preferred
    return available[0] if available else None


def clone_repo(context: InvocationContext, url: str) -> BareGitRepo:
    """Clone an existing dotfiles repository into the work tree.

    Local files that conflict with the fetched branch are never
    overwritten: if the merge fails the index is reset to the remote
    branch and the operator is asked to reconcile the differences.
    """
    repo = _prepare_store(context)

    try:
        repo.run_bare("remote", "add", "origin", url)
    except subprocess.CalledProcessError as e:
        repo.remove()
        raise RepositoryError(
            f"Unable to add remote {url}: {get_subprocess_error(e)}"
        ) from e

    logger.debug("Doing an initial fetch of the origin")
    fetch = repo.run_bare("fetch", "origin", check=False)
    if fetch.returncode != 0:
        logger.debug("Removing repo after failed clone")
        repo.remove()
        raise RepositoryError(
            f"Unable to fetch origin {url}: {fetch.stderr.strip()}"
        )

    branch = choose_branch(repo.remote_branches())
    if branch is None:
        logger.warning(f"No branches were fetched from {url}")
        context.changes_possible = True
        return repo

    logger.debug(f"Configuring new repo to track origin/{branch}")
    repo.run_bare("config", f"branch.{branch}.remote", "origin")
    repo.run_bare("config", f"branch.{branch}.merge", f"refs/heads/{branch}")
    repo.run_bare("symbolic-ref", "HEAD", f"refs/heads/{branch}")

    logger.debug(f"Doing an initial merge of origin/{branch}")
    merge = repo.run("merge", f"origin/{branch}", check=False)
    if merge.returncode != 0:
        logger.debug(f"Merge failed, doing a reset: {merge.stderr.strip()}")
        try:
            repo.run("reset", f"origin/{branch}")
        except subprocess.CalledProcessError as e:
            raise RepositoryError(
                f"Unable to reset to origin/{branch}: {get_subprocess_error(e)}"
            ) from e
        typer.echo(MERGE_FAILED_NOTICE.format(branch=branch))

    context.changes_possible = True
    return repo
