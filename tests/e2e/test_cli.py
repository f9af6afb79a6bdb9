"""End-to-end tests for the dotkeep command line.

These run the Typer app in-process against a temporary home directory
and real git repositories.
"""

import os
import shutil
import stat
import subprocess
from pathlib import Path

import pytest
from typer.testing import CliRunner

from dotkeep.cli import app

pytestmark = pytest.mark.skipif(
    shutil.which("git") is None, reason="git is not installed"
)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli_home(tmp_path, monkeypatch):
    """A fake $HOME for the CLI."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(home)
    return home


def _setup_mock_remote(tmp_path: Path, files: dict) -> Path:
    """Create a bare git repo with initial files on 'master'."""
    env = os.environ.copy()
    env.pop("GIT_DIR", None)
    remote_repo = tmp_path / "remote_dots.git"
    temp_worktree = tmp_path / "temp_worktree"
    temp_worktree.mkdir()

    def git(*args, cwd=temp_worktree):
        subprocess.run(
            ["git"] + list(args),
            cwd=cwd,
            check=True,
            capture_output=True,
            env=env,
        )

    git("init", "--bare", str(remote_repo), cwd=tmp_path)
    git("init")
    git("config", "user.email", "test@test.com")
    git("config", "user.name", "Test User")

    for filename, content in files.items():
        file_path = temp_worktree / filename
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)

    git("add", ".")
    git("commit", "-m", "init")
    git("remote", "add", "origin", str(remote_repo))
    git("push", "origin", "HEAD:master")

    return remote_repo


class TestCliBasics:
    """Tests for options and errors handled before any command runs."""

    def test_version(self, runner, cli_home):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert result.output.startswith("dotkeep ")

    def test_relative_override_is_rejected(self, runner, cli_home):
        """A relative --repo fails before anything is created."""
        result = runner.invoke(app, ["--repo", "relative.git", "init"])

        assert result.exit_code == 1
        assert "fully qualified" in result.output
        assert not (cli_home / ".dotkeep").exists()

    def test_passthrough_without_repo_fails(self, runner, cli_home):
        result = runner.invoke(app, ["status"])

        assert result.exit_code == 1
        assert "Did you forget to run 'init' or 'clone'?" in result.output


class TestCliInit:
    """Tests for 'dotkeep init'."""

    def test_init_creates_store(self, runner, cli_home):
        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        assert (cli_home / ".dotkeep" / "repo.git").is_dir()

    def test_init_twice_needs_force(self, runner, cli_home):
        runner.invoke(app, ["init"])

        again = runner.invoke(app, ["init"])
        forced = runner.invoke(app, ["init", "-f"])

        assert again.exit_code == 1
        assert "already exists" in again.output
        assert forced.exit_code == 0

    def test_custom_dir(self, runner, cli_home, tmp_path):
        result = runner.invoke(app, ["-Y", str(tmp_path / "dk"), "init"])

        assert result.exit_code == 0
        assert (tmp_path / "dk" / "repo.git").is_dir()


class TestCliClone:
    """Tests for 'dotkeep clone' and the automatic maintenance after it."""

    def test_clone_links_alternates_and_fixes_perms(
        self, runner, cli_home, tmp_path
    ):
        """The empty-tag alternate is linked and .ssh is made private."""
        remote = _setup_mock_remote(
            tmp_path,
            {
                ".vimrc##": "set nu",
                ".ssh/config": "Host *",
            },
        )

        result = runner.invoke(app, ["clone", str(remote)])

        assert result.exit_code == 0, result.output
        assert (cli_home / ".vimrc").is_symlink()
        assert (cli_home / ".vimrc").read_text() == "set nu"
        mode = stat.S_IMODE((cli_home / ".ssh").stat().st_mode)
        assert mode & 0o077 == 0

    def test_auto_alt_can_be_disabled(self, runner, cli_home, tmp_path):
        remote = _setup_mock_remote(tmp_path, {".vimrc##": "set nu"})
        runner.invoke(app, ["config", "dotkeep.auto-alt", "false"])

        result = runner.invoke(app, ["clone", str(remote)])

        assert result.exit_code == 0, result.output
        assert not (cli_home / ".vimrc").exists()

    def test_alt_command_reports_links(self, runner, cli_home, tmp_path):
        remote = _setup_mock_remote(tmp_path, {".vimrc##": "set nu"})
        runner.invoke(app, ["config", "dotkeep.auto-alt", "false"])
        runner.invoke(app, ["clone", str(remote)])

        result = runner.invoke(app, ["alt"])

        assert result.exit_code == 0
        assert f"to {cli_home / '.vimrc'}" in result.output
        assert (cli_home / ".vimrc").is_symlink()

    def test_list_tracked_files(self, runner, cli_home, tmp_path):
        remote = _setup_mock_remote(
            tmp_path, {".bashrc": "# rc", ".config/app.cfg": "x"}
        )
        runner.invoke(app, ["clone", str(remote)])

        result = runner.invoke(app, ["list", "-a"])

        assert result.exit_code == 0
        assert result.output.splitlines() == [".bashrc", ".config/app.cfg"]


class TestCliConfig:
    """Tests for 'dotkeep config'."""

    def test_set_and_get(self, runner, cli_home):
        runner.invoke(app, ["config", "dotkeep.gpg-recipient", "ASK"])

        settings = cli_home / ".dotkeep" / "config"
        assert "gpg-recipient = ASK" in settings.read_text()

    def test_without_args_lists_keys(self, runner, cli_home):
        result = runner.invoke(app, ["config"])

        assert result.exit_code == 0
        assert "dotkeep.auto-perms" in result.output


@pytest.mark.skipif(shutil.which("tar") is None, reason="tar is not installed")
class TestCliEncryption:
    """Tests for prerequisite failures of encrypt/decrypt."""

    def test_encrypt_without_manifest(self, runner, cli_home):
        runner.invoke(app, ["config", "dotkeep.gpg-program", "sh"])

        result = runner.invoke(app, ["encrypt"])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_decrypt_without_archive(self, runner, cli_home):
        runner.invoke(app, ["config", "dotkeep.gpg-program", "sh"])

        result = runner.invoke(app, ["decrypt"])

        assert result.exit_code == 1
        assert "Did you encrypt files first?" in result.output


class TestCliMissingGit:
    """Tests for a configured git program that cannot be found."""

    @pytest.fixture
    def broken_git(self, runner, cli_home):
        runner.invoke(app, ["init"])
        runner.invoke(app, ["config", "dotkeep.git-program", "no-such-git"])
        return cli_home

    def test_passthrough_reports_error(self, runner, broken_git):
        result = runner.invoke(app, ["status"])

        assert result.exit_code == 1
        assert "ERROR: This functionality requires git" in result.output
        assert "'no-such-git' cannot be located" in result.output
        assert not isinstance(result.exception, FileNotFoundError)

    def test_version_still_works(self, runner, broken_git):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
