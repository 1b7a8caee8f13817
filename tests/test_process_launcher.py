"""Tests for resolving and exec-launching the child command."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest

from envdir.services.process_launcher import ProcessLauncher, environment_to_mapping
from envdir.services.result import FailureKind


class RecordingExec:
    """Exec primitive double that records its call and returns."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[str], dict[str, str]]] = []

    def __call__(self, path: str, argv: Sequence[str], env: Mapping[str, str]) -> None:
        self.calls.append((path, list(argv), dict(env)))


def _make_executable(path: Path) -> Path:
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(0o755)
    return path


# --- environment_to_mapping tests ---


def test_environment_to_mapping__last_duplicate_wins() -> None:
    """Later entries override earlier ones with the same name."""
    mapping = environment_to_mapping(["A=1", "B=2", "A=3"])

    assert mapping == {"A": "3", "B": "2"}


def test_environment_to_mapping__splits_on_first_equals() -> None:
    """Values may contain '='."""
    assert environment_to_mapping(["K=v=w"]) == {"K": "v=w"}


def test_environment_to_mapping__drops_malformed_entries() -> None:
    """Entries without '=' or without a name are dropped."""
    assert environment_to_mapping(["NOEQ", "=x", "OK="]) == {"OK": ""}


# --- ProcessLauncher tests ---


def test_launcher__passes_argv_and_environment() -> None:
    """Hand the resolved path, argv with argument zero and env to exec."""
    fake_exec = RecordingExec()
    launcher = ProcessLauncher(
        exec_primitive=fake_exec,
        resolver=lambda cmd, path=None: "/usr/bin/" + cmd,
    )

    failure = launcher.launch("tool", ["-x", "--flag", "arg"], ["FOO=bar", "FOO=baz"])

    assert failure is None
    assert fake_exec.calls == [
        ("/usr/bin/tool", ["tool", "-x", "--flag", "arg"], {"FOO": "baz"}),
    ]


def test_launcher__not_found_is_resolution_failure() -> None:
    """Report a resolution failure and never call exec."""
    fake_exec = RecordingExec()
    launcher = ProcessLauncher(exec_primitive=fake_exec, resolver=lambda cmd, path=None: None)

    failure = launcher.launch("missing-tool", [], [])

    assert failure is not None
    assert failure.kind is FailureKind.RESOLUTION
    assert failure.message == "Cannot find 'missing-tool': executable file not found in $PATH"
    assert fake_exec.calls == []


def test_launcher__exec_error_is_launch_failure() -> None:
    """An OSError from the exec primitive becomes a launch failure."""

    def failing_exec(path: str, argv: Sequence[str], env: Mapping[str, str]) -> None:
        raise PermissionError(13, "Permission denied")

    launcher = ProcessLauncher(
        exec_primitive=failing_exec,
        resolver=lambda cmd, path=None: "/bin/" + cmd,
    )

    failure = launcher.launch("tool", [], [])

    assert failure is not None
    assert failure.kind is FailureKind.LAUNCH
    assert failure.message.startswith("Cannot start 'tool': ")
    assert "Permission denied" in failure.message


def test_launcher__searches_configured_path(tmp_path: Path) -> None:
    """Resolve bare names against the search path."""
    script = _make_executable(tmp_path / "hello")
    launcher = ProcessLauncher(exec_primitive=RecordingExec(), search_path=str(tmp_path))

    assert launcher.resolve("hello") == str(script)
    assert launcher.resolve("absent") is None


def test_launcher__qualified_path_used_as_is(tmp_path: Path) -> None:
    """Names with a directory component are not searched for."""
    script = _make_executable(tmp_path / "hello")
    fake_exec = RecordingExec()
    launcher = ProcessLauncher(exec_primitive=fake_exec, search_path=os.devnull)

    failure = launcher.launch(str(script), ["a"], ["X=1"])

    assert failure is None
    assert fake_exec.calls == [(str(script), [str(script), "a"], {"X": "1"})]


def test_launcher__defaults_to_os_primitives(monkeypatch: pytest.MonkeyPatch) -> None:
    """Use os.execve and the process PATH when nothing is injected."""
    calls: list[Any] = []
    monkeypatch.setattr(os, "execve", lambda *args: calls.append(args))
    monkeypatch.setenv("PATH", os.defpath)

    launcher = ProcessLauncher()
    failure = launcher.launch("sh", ["-c", "true"], ["A=1"])

    assert failure is None
    assert len(calls) == 1
    path, argv, env = calls[0]
    assert os.path.basename(path) == "sh"
    assert argv == ["sh", "-c", "true"]
    assert env == {"A": "1"}
