"""Best-effort system volume control.

Every backend is an external command; a missing tool or a non-zero exit just
moves on to the next one. Nothing here raises.
"""

from __future__ import annotations

import logging
import subprocess
import sys
from typing import List, Optional, Sequence

LOGGER = logging.getLogger(__name__)

COMMAND_TIMEOUT_S = 5

# nircmd takes 0..65535 for 0..100%.
NIRCMD_MAX = 65535


def clamp_percent(percent: int) -> int:
    return max(0, min(100, int(percent)))


def _powershell_script(percent: int) -> str:
    # Each VolumeDown/VolumeUp key press moves the master volume by 2%.
    presses = round(percent / 2)
    return (
        "$shell = New-Object -ComObject WScript.Shell; "
        "1..50 | ForEach-Object { $shell.SendKeys([char]174) }; "
        f"if ({presses} -gt 0) {{ 1..{presses} | ForEach-Object {{ $shell.SendKeys([char]175) }} }}"
    )


def volume_commands(percent: int, platform: Optional[str] = None) -> List[List[str]]:
    """Return the commands to try, in order, for this platform."""

    percent = clamp_percent(percent)
    system = platform or sys.platform
    if system.startswith("win"):
        return [
            ["nircmd", "setsysvolume", str(round(percent / 100 * NIRCMD_MAX))],
            ["powershell.exe", "-NoProfile", "-Command", _powershell_script(percent)],
        ]
    if system == "darwin":
        return [["osascript", "-e", f"set volume output volume {percent}"]]
    return [
        ["pactl", "set-sink-volume", "@DEFAULT_SINK@", f"{percent}%"],
        ["amixer", "-q", "sset", "Master", f"{percent}%", "unmute"],
    ]


def _run(command: Sequence[str]) -> bool:
    try:
        result = subprocess.run(
            list(command),
            capture_output=True,
            timeout=COMMAND_TIMEOUT_S,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        LOGGER.debug("Volume command %s unavailable: %s", command[0], exc)
        return False
    if result.returncode != 0:
        LOGGER.debug("Volume command %s exited with %s", command[0], result.returncode)
        return False
    return True


def set_system_volume(percent: int, platform: Optional[str] = None) -> bool:
    """Set the master output volume to percent (clamped to 0..100)."""

    level = clamp_percent(percent)
    for command in volume_commands(level, platform):
        if _run(command):
            LOGGER.debug("System volume set to %s%% using %s", level, command[0])
            return True
    LOGGER.warning("Could not set system volume to %s%%, no volume backend succeeded", level)
    return False
