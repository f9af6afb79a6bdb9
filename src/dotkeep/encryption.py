"""Encrypting manifest-selected files into a single archive and back.

The manifest is a list of glob patterns, one per line, relative to the
work tree. Files matching it are streamed through ``tar`` into the cipher
program (``gpg`` by default) to produce one archive that can be tracked
in place of the sensitive files themselves.
"""

import glob
import logging
import os
from pathlib import Path
from typing import List

import typer

from .context import InvocationContext
from .errors import PipelineError, PrerequisiteError

logger = logging.getLogger(__name__)

COMMENT_MARKER = "#"
ASK_RECIPIENT = "ASK"
TAR_PROGRAM = "tar"


def read_manifest(manifest: Path) -> List[str]:
    """Return the glob lines of a manifest, skipping comments and blanks."""
    patterns = []
    with open(manifest, "r") as f:
        for line in f:
            pattern = line.rstrip("\r\n")
            if not pattern or pattern.startswith(COMMENT_MARKER):
                continue
            patterns.append(pattern)
    return patterns


def expand_manifest(manifest: Path, work_tree: Path) -> List[str]:
    """Expand every manifest line into the paths it matches.

    Matches are ordered per line (sorted, like ``ls -d``), in manifest
    order. A path matched by more than one line appears more than once.
    """
    files: List[str] = []
    for pattern in read_manifest(manifest):
        matches = glob.glob(
            os.path.expanduser(pattern), root_dir=str(work_tree)
        )
        if not matches:
            logger.debug(f"No files match {pattern!r}")
        files.extend(sorted(matches))
    return files


def recipient_options(recipient: str) -> List[str]:
    """Cipher options for the configured recipient mode.

    ``ASK`` lets gpg prompt for recipients, any other value encrypts to
    that key, and an empty value uses a symmetric passphrase.
    """
    if recipient == ASK_RECIPIENT:
        return ["--no-default-recipient", "-e"]
    if recipient:
        return ["-e", "-r", recipient]
    return ["-c"]


def _require_program(context: InvocationContext, program: str) -> None:
    if not context.pipeline.has_program(program):
        raise PrerequisiteError(
            f"This functionality requires {program} to be installed, "
            f"but the command '{program}' cannot be located."
        )


def _stage_error(message: str, result) -> PipelineError:
    stage = result.failed_stage
    name = stage.args[0] if stage and stage.args else ""
    stderr = stage.stderr.strip() if stage else ""
    if stderr:
        logger.debug(f"{name} failed: {stderr}")
    return PipelineError(message, stage=name, stderr=stderr)


def encrypt(context: InvocationContext) -> List[str]:
    """Write the manifest-selected files to the encrypted archive.

    Returns the list of files that went into the archive. The archive is
    written to a temporary name and only renamed into place once both
    the archive and cipher stages succeed.
    """
    gpg = context.gpg_program
    manifest = context.paths.encrypt
    archive = context.paths.archive

    _require_program(context, gpg)
    _require_program(context, TAR_PROGRAM)
    if not manifest.is_file():
        raise PrerequisiteError(
            f"{manifest} does not exist. It should contain a list of "
            "globs describing the files to encrypt."
        )

    work_tree = context.work_tree
    if not work_tree.is_dir():
        raise PrerequisiteError(
            f"Encryption not processed, unable to cd into {work_tree}"
        )

    recipient = context.config.get("dotkeep.gpg-recipient")
    options = recipient_options(recipient)

    files = expand_manifest(manifest, work_tree)
    typer.echo("Encrypting the following files:")
    for path in files:
        typer.echo(path)

    archive.parent.mkdir(parents=True, exist_ok=True)
    partial = archive.with_name(archive.name + ".partial")
    producer = [TAR_PROGRAM, "-f", "-", "-c", "--"] + files
    consumer = [gpg, "--yes"] + options + ["--output", str(partial)]

    result = context.pipeline.run(producer, consumer, cwd=work_tree)
    if not result.ok:
        partial.unlink(missing_ok=True)
        raise _stage_error(f"Unable to write {archive}", result)

    os.replace(partial, archive)
    typer.echo(f"Wrote new file: {archive}")

    repo = context.repo
    if repo.exists() and not repo.is_tracked(archive):
        typer.echo(
            f"It appears that {archive} is not tracked by the repository."
        )
        if context.prompt("Would you like to add it now?"):
            repo.add(archive)

    context.changes_possible = True
    return files


def decrypt(context: InvocationContext, list_only: bool = False) -> str:
    """Extract (or just list) the contents of the encrypted archive.

    Extraction is not transactional: files written before a failing
    stage are left in place.
    """
    gpg = context.gpg_program
    archive = context.paths.archive

    _require_program(context, gpg)
    _require_program(context, TAR_PROGRAM)
    if not archive.is_file():
        raise PrerequisiteError(
            f"{archive} does not exist. Did you encrypt files first?"
        )

    work_tree = context.work_tree
    if not work_tree.is_dir():
        raise PrerequisiteError(
            f"Decryption not processed, unable to cd into {work_tree}"
        )

    mode = "t" if list_only else "x"
    producer = [gpg, "-d", str(archive)]
    consumer = [TAR_PROGRAM, f"v{mode}f", "-", "-C", str(work_tree)]

    result = context.pipeline.run(producer, consumer, cwd=work_tree)
    if result.stdout:
        typer.echo(result.stdout, nl=False)
    if not result.ok:
        raise _stage_error("Unable to extract encrypted files.", result)

    if not list_only:
        typer.echo("All files decrypted.")

    context.changes_possible = True
    return result.stdout
