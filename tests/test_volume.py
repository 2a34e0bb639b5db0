from __future__ import annotations

import subprocess

from whatsalarm.adapters import volume
from whatsalarm.adapters.volume import NIRCMD_MAX, clamp_percent, set_system_volume, volume_commands


class FakeRun:
    def __init__(self, outcomes: dict) -> None:
        self.outcomes = outcomes
        self.calls: list[list[str]] = []

    def __call__(self, command, **kwargs):
        self.calls.append(command)
        outcome = self.outcomes.get(command[0], 0)
        if isinstance(outcome, BaseException):
            raise outcome
        return subprocess.CompletedProcess(command, outcome)


def test_clamp_percent() -> None:
    assert clamp_percent(-5) == 0
    assert clamp_percent(55) == 55
    assert clamp_percent(150) == 100


def test_commands_per_platform() -> None:
    windows = volume_commands(100, "win32")
    assert windows[0] == ["nircmd", "setsysvolume", str(NIRCMD_MAX)]
    assert windows[1][0] == "powershell.exe"

    assert volume_commands(40, "darwin") == [["osascript", "-e", "set volume output volume 40"]]

    linux = volume_commands(140, "linux")
    assert [command[0] for command in linux] == ["pactl", "amixer"]
    assert linux[0][-1] == "100%"


def test_first_working_backend_wins(monkeypatch) -> None:
    fake = FakeRun({"pactl": 0})
    monkeypatch.setattr(volume.subprocess, "run", fake)

    assert set_system_volume(80, "linux") is True
    assert [call[0] for call in fake.calls] == ["pactl"]


def test_falls_back_when_tool_is_missing_or_fails(monkeypatch) -> None:
    fake = FakeRun({"nircmd": FileNotFoundError("nircmd"), "powershell.exe": 0})
    monkeypatch.setattr(volume.subprocess, "run", fake)

    assert set_system_volume(100, "win32") is True
    assert [call[0] for call in fake.calls] == ["nircmd", "powershell.exe"]


def test_all_backends_failing_returns_false(monkeypatch) -> None:
    fake = FakeRun({"pactl": 1, "amixer": subprocess.TimeoutExpired("amixer", 5)})
    monkeypatch.setattr(volume.subprocess, "run", fake)

    assert set_system_volume(100, "linux") is False
    assert len(fake.calls) == 2
