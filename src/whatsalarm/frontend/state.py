"""State container for config loading and dirty tracking."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class ConfigState:
    data: dict[str, Any] | None = None
    dirty: bool = False
    error: str | None = None

    def section(self, *path: str) -> dict[str, Any]:
        """Return the nested dict at path, creating missing levels."""

        if self.data is None:
            self.data = {}
        node = self.data
        for key in path:
            child = node.get(key)
            if not isinstance(child, dict):
                child = {}
                node[key] = child
            node = child
        return node


def read_config_file(path: Path) -> tuple[dict[str, Any] | None, str | None]:
    """Read the JSON config, returning (data, error) instead of raising."""

    try:
        loaded = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None, f"{path.name} missing"
    except json.JSONDecodeError as exc:
        return None, f"{path.name} line {exc.lineno}: {exc.msg}"
    except OSError as exc:
        return None, f"cannot read {path.name}: {exc.strerror or exc}"
    if not isinstance(loaded, dict):
        return None, "config root must be an object"
    return loaded, None


def write_config_file(path: Path, data: dict[str, Any]) -> None:
    """Write through a sibling temp file so a crash never leaves half a config."""

    tmp_path = path.with_suffix(path.suffix + ".tmp")
    # Keywords are usually Arabic; keep them readable in the file.
    tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    os.replace(tmp_path, path)
