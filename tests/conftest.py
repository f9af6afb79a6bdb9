"""Shared fixtures for dotkeep tests."""

import os
import subprocess
from pathlib import Path

import pytest

from dotkeep.context import InvocationContext
from dotkeep.paths import resolve_paths
from dotkeep.pipeline import PipelineResult, StageResult
from dotkeep.system import Environment


@pytest.fixture(autouse=True)
def _isolate_git_dir():
    """Keep an exported GIT_DIR from leaking between tests."""
    saved = os.environ.pop("GIT_DIR", None)
    yield
    os.environ.pop("GIT_DIR", None)
    if saved is not None:
        os.environ["GIT_DIR"] = saved


class FakePipeline:
    """Records pipeline runs instead of starting processes.

    A successful run that names ``--output`` writes placeholder bytes
    there, the way gpg would.
    """

    def __init__(
        self,
        producer_rc=0,
        consumer_rc=0,
        stdout="",
        programs=("gpg", "tar"),
    ):
        self.producer_rc = producer_rc
        self.consumer_rc = consumer_rc
        self.stdout = stdout
        self.programs = set(programs)
        self.calls = []

    def has_program(self, program):
        return program in self.programs

    def run(self, producer, consumer, cwd=None):
        self.calls.append((list(producer), list(consumer), cwd))
        if "--output" in consumer:
            output = Path(consumer[consumer.index("--output") + 1])
            output.write_bytes(b"partial" if self.consumer_rc else b"cipher")
        return PipelineResult(
            producer=StageResult(list(producer), self.producer_rc, "boom"),
            consumer=StageResult(list(consumer), self.consumer_rc, "bang"),
            stdout=self.stdout,
        )


class PlaintextCipherPipeline(FakePipeline):
    """Runs tar for real but stores the archive unencrypted."""

    def run(self, producer, consumer, cwd=None):
        self.calls.append((list(producer), list(consumer), cwd))
        if producer[0] == "tar":
            tar = subprocess.run(producer, cwd=cwd, capture_output=True)
            output = Path(consumer[consumer.index("--output") + 1])
            output.write_bytes(tar.stdout)
            return PipelineResult(
                producer=StageResult(list(producer), tar.returncode),
                consumer=StageResult(list(consumer), 0),
            )
        data = Path(producer[-1]).read_bytes()
        tar = subprocess.run(consumer, input=data, cwd=cwd, capture_output=True)
        return PipelineResult(
            producer=StageResult(list(producer), 0),
            consumer=StageResult(list(consumer), tar.returncode),
            stdout=tar.stdout.decode(),
        )


@pytest.fixture
def home(tmp_path):
    """An empty home directory to act as the work tree."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    return home_dir


@pytest.fixture
def environment(home):
    """A fixed machine identity: Linux / myhost / alice."""
    env = Environment()
    env.home = home
    env.system = "Linux"
    env.host = "myhost"
    env.user = "alice"
    return env


@pytest.fixture
def context(tmp_path, environment):
    """An invocation context with paths under tmp_path and a fake pipeline."""
    paths = resolve_paths(environment.home, base=tmp_path / "dotkeep")
    answers = []
    ctx = InvocationContext(
        paths=paths,
        environment=environment,
        pipeline=FakePipeline(),
        prompt=lambda question: answers.pop(0) if answers else False,
    )
    ctx.answers = answers
    return ctx


@pytest.fixture
def fake_pipeline():
    """Factory for recording pipelines with chosen exit codes."""
    return FakePipeline


@pytest.fixture
def plaintext_pipeline():
    """A pipeline that archives for real and skips the cipher."""
    return PlaintextCipherPipeline()
