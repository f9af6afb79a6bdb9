"""Linking machine-specific alternate files into place.

A tracked file (or directory) may have variants named ``<base>##<tag>``,
where the tag is, from most to least specific::

    <system>.<host>.<user>
    <system>.<host>
    <system>
    (empty)

For every base name, the most specific variant present for this machine
is linked to ``<base>`` with a symlink.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

import typer

from .context import InvocationContext

logger = logging.getLogger(__name__)

ALT_SEPARATOR = "##"

Tier = Tuple[int, Pattern[str]]


@dataclass(frozen=True)
class AlternateCandidate:
    """A concrete variant and the generic name it would be linked to."""

    base_path: str
    tier: int
    source_path: str


def alternate_tiers(system: str, host: str, user: str) -> List[Tier]:
    """Suffix patterns ordered from most (0) to least (3) specific."""
    tags = [
        f"{system}.{host}.{user}",
        f"{system}.{host}",
        system,
        "",
    ]
    return [
        (
            tier,
            re.compile(
                "^(.+)" + re.escape(ALT_SEPARATOR) + re.escape(tag) + "$"
            ),
        )
        for tier, tag in enumerate(tags)
    ]


def match_alternate(
    path: str, tiers: Iterable[Tier]
) -> Optional[AlternateCandidate]:
    """Match ``path`` against the tiers in order, stopping at the first hit."""
    for tier, pattern in tiers:
        match = pattern.match(path)
        if match:
            return AlternateCandidate(match.group(1), tier, path)
    return None


def candidate_paths(tracked: Iterable[str]) -> List[str]:
    """Tracked files, then their immediate parent directories, each sorted."""
    tracked = list(tracked)
    parents = {os.path.dirname(path) for path in tracked}
    parents.discard("")
    return sorted(tracked) + sorted(parents)


def plan_links(
    tracked: Iterable[str], tiers: List[Tier], work_tree: Path
) -> List[AlternateCandidate]:
    """Pick the most specific existing variant for each generic name."""
    chosen: Dict[str, AlternateCandidate] = {}
    for path in candidate_paths(tracked):
        if not (work_tree / path).exists():
            continue
        candidate = match_alternate(path, tiers)
        if candidate is None:
            continue
        current = chosen.get(candidate.base_path)
        if current is None or candidate.tier < current.tier:
            chosen[candidate.base_path] = candidate
    return list(chosen.values())


def link_alternate(work_tree: Path, candidate: AlternateCandidate) -> bool:
    """Point ``<base>`` at the chosen variant.

    An existing symlink or file at ``<base>`` is replaced. Returns False
    when nothing had to change.
    """
    source = work_tree / candidate.source_path
    target = work_tree / candidate.base_path

    if target.is_symlink():
        if os.readlink(target) == str(source):
            return False
        target.unlink()
    elif target.is_dir():
        logger.warning(
            f"Not linking {source}: {target} is a real directory"
        )
        return False
    elif target.exists():
        target.unlink()

    target.symlink_to(source)
    return True


def update_alternates(
    context: InvocationContext, loud: bool = False
) -> List[AlternateCandidate]:
    """Link every alternate that matches this machine.

    When the work tree cannot be entered the sweep is skipped. ``loud``
    echoes each link; otherwise links are only reported in debug logging.
    """
    work_tree = context.work_tree
    if not work_tree.is_dir():
        logger.debug(
            f"Alternates not processed, unable to cd into {work_tree}"
        )
        return []

    env = context.environment
    tiers = alternate_tiers(env.system, env.host, env.user)
    tracked = context.repo.tracked_files()

    linked = []
    for candidate in plan_links(tracked, tiers, work_tree):
        message = (
            f"Linking {work_tree / candidate.source_path} "
            f"to {work_tree / candidate.base_path}"
        )
        logger.debug(message)
        if loud:
            typer.echo(message)
        if link_alternate(work_tree, candidate):
            linked.append(candidate)
    return linked
