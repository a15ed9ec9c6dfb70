"""Tests for git and command execution wrappers."""

import subprocess
from unittest.mock import MagicMock

import pytest
from fakes import make_snapshot

from thumbs_core.runner import IntegrationRunner
from thumbs_core.status import StepResult
from thumbs_core.workspace import GitCommandError, GitWorkspace, remove_tree, run_command


class TestRunCommand:
    def test_captures_exit_code_and_output(self, tmp_path):
        result = run_command("echo hello", cwd=tmp_path)
        assert result.ok
        assert result.exit_code == 0
        assert result.output.strip() == "hello"

    def test_interleaves_stderr(self, tmp_path):
        result = run_command("echo out; echo err 1>&2; exit 3", cwd=tmp_path)
        assert result.exit_code == 3
        assert not result.ok
        assert "out" in result.output
        assert "err" in result.output

    def test_runs_in_workspace_directory(self, tmp_path):
        (tmp_path / "marker.txt").write_text("x")
        result = run_command("ls", cwd=tmp_path)
        assert "marker.txt" in result.output

    def test_timeout_returns_error_result(self, tmp_path):
        result = run_command("sleep 5", cwd=tmp_path, timeout=0.2)
        assert result.timed_out
        assert result.exit_code is None
        assert "timed out" in result.output

    def test_missing_cwd_returns_error_result(self, tmp_path):
        result = run_command("true", cwd=tmp_path / "missing")
        assert result.exit_code is None
        assert "could not run command" in result.output


class TestGitWorkspace:
    def test_merge_returns_summary(self, mocker, tmp_path):
        run = mocker.patch("subprocess.run", return_value=MagicMock(returncode=0, stdout="Already up to date.\n"))
        summary = GitWorkspace(tmp_path).merge("abc123")
        assert summary == "Already up to date.\n"
        assert run.call_args.args[0] == ["git", "merge", "--no-edit", "abc123"]
        assert run.call_args.kwargs["cwd"] == tmp_path

    def test_nonzero_exit_raises(self, mocker, tmp_path):
        mocker.patch("subprocess.run", return_value=MagicMock(returncode=1, stdout="CONFLICT (content)"))
        with pytest.raises(GitCommandError) as exc:
            GitWorkspace(tmp_path).merge("abc123")
        assert exc.value.returncode == 1
        assert "CONFLICT" in str(exc.value)

    def test_create_branch_checks_out_new_branch(self, mocker, tmp_path):
        run = mocker.patch("subprocess.run", return_value=MagicMock(returncode=0, stdout=""))
        GitWorkspace(tmp_path).create_branch("feature_1")
        assert run.call_args.args[0] == ["git", "checkout", "--quiet", "-b", "feature_1"]

    def test_undecodable_output_is_replaced(self, mocker, tmp_path):
        run = mocker.patch("subprocess.run", return_value=MagicMock(returncode=0, stdout=""))
        GitWorkspace(tmp_path).checkout("main")
        assert run.call_args.kwargs["errors"] == "replace"

    def test_clone_timeout_raises_git_error(self, mocker, tmp_path):
        mocker.patch("subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="git", timeout=600))
        with pytest.raises(GitCommandError):
            GitWorkspace.clone("git@github.com:acme/widgets.git", tmp_path / "w")

    def test_real_clone_and_merge(self, tmp_path):
        origin = tmp_path / "origin"
        origin.mkdir()
        env_cmds = (
            "git init -q -b main && git config user.email t@example.com && git config user.name t && "
            "echo a > a.txt && git add a.txt && git commit -qm a && "
            "git checkout -qb topic && echo b > b.txt && git add b.txt && git commit -qm b && git checkout -q main"
        )
        if not run_command(env_cmds, cwd=origin).ok:
            pytest.skip("git is not available")
        sha = run_command("git rev-parse topic", cwd=origin).output.strip()

        ws = GitWorkspace.clone(str(origin), tmp_path / "clone")
        ws.checkout(sha)
        ws.checkout("main")
        ws.create_branch("feature_1")
        ws.merge(sha)

        assert (tmp_path / "clone" / "b.txt").exists()

    def test_conflict_on_non_utf8_filename_records_merge_error(self, tmp_path, monkeypatch):
        for var in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
            monkeypatch.setenv(var, "t")
        for var in ("GIT_AUTHOR_EMAIL", "GIT_COMMITTER_EMAIL"):
            monkeypatch.setenv(var, "t@example.com")
        origin = tmp_path / "origin"
        origin.mkdir()
        env_cmds = (
            "git init -q -b main && f=$(printf 'caf\\351.txt') && "
            "echo base > \"$f\" && git add -A && git commit -qm base && "
            "git checkout -qb topic && echo topic > \"$f\" && git commit -qam topic && "
            "git checkout -q main && echo main > \"$f\" && git commit -qam main"
        )
        if not run_command(env_cmds, cwd=origin).ok:
            pytest.skip("git or non-UTF-8 filenames are not available")
        sha = run_command("git rev-parse topic", cwd=origin).output.strip()

        runner = IntegrationRunner(make_snapshot(head_sha=sha), tmp_path / "build", remote_url=str(origin))
        step = runner.attempt_integration(sha, "main")

        assert step.result is StepResult.ERROR
        assert step.message == "Merge test failed"
        assert "CONFLICT" in step.output
        assert runner.build_status.get("clone").ok


def test_remove_tree_missing_is_not_an_error(tmp_path):
    remove_tree(tmp_path / "does-not-exist")
    target = tmp_path / "build"
    (target / "nested").mkdir(parents=True)
    remove_tree(target)
    assert not target.exists()
