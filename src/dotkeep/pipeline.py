"""Two-stage process pipelines (``producer | consumer``).

Archiving and encryption are chained the way a shell would chain them, but
each stage's exit status and stderr are kept separately so a failure can be
attributed to the stage that caused it.
"""

import logging
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from .utils import is_program_available

logger = logging.getLogger(__name__)


@dataclass
class StageResult:
    args: List[str]
    returncode: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class PipelineResult:
    producer: StageResult
    consumer: StageResult
    stdout: str = ""

    @property
    def ok(self) -> bool:
        return self.producer.ok and self.consumer.ok

    @property
    def failed_stage(self) -> Optional[StageResult]:
        """The first stage that exited non-zero, if any."""
        for stage in (self.producer, self.consumer):
            if not stage.ok:
                return stage
        return None


class Pipeline(Protocol):
    def has_program(self, program: str) -> bool:
        ...

    def run(
        self,
        producer: Sequence[str],
        consumer: Sequence[str],
        cwd: Optional[Path] = None,
    ) -> PipelineResult:
        ...


class SubprocessPipeline:
    """Runs ``producer | consumer`` as two real processes."""

    def has_program(self, program: str) -> bool:
        return is_program_available(program)

    def run(
        self,
        producer: Sequence[str],
        consumer: Sequence[str],
        cwd: Optional[Path] = None,
    ) -> PipelineResult:
        logger.debug(f"Running pipeline: {producer} | {consumer}")
        workdir = str(cwd) if cwd else None

        # stderr of the first stage goes to a file so it can never fill a
        # pipe buffer while we are blocked on the second stage
        with tempfile.TemporaryFile() as producer_err:
            first = subprocess.Popen(
                list(producer),
                stdout=subprocess.PIPE,
                stderr=producer_err,
                cwd=workdir,
            )
            try:
                second = subprocess.Popen(
                    list(consumer),
                    stdin=first.stdout,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    cwd=workdir,
                )
            except OSError:
                first.kill()
                first.wait()
                raise
            if first.stdout is not None:
                # let the producer see SIGPIPE if the consumer exits early
                first.stdout.close()
            out, err = second.communicate()
            first.wait()
            producer_err.seek(0)
            first_err = producer_err.read()

        return PipelineResult(
            producer=StageResult(
                list(producer),
                first.returncode,
                first_err.decode(errors="replace"),
            ),
            consumer=StageResult(
                list(consumer),
                second.returncode,
                err.decode(errors="replace"),
            ),
            stdout=out.decode(errors="replace"),
        )
