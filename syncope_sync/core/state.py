"""Durable key/value state used for realm and role UUID caches."""
from __future__ import annotations
import json
import os
from pathlib import Path
from typing import Any, Optional


class MemoryState:
    """Process-local state, used in tests and when no state file is configured."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._values: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._values if k.startswith(prefix))


class JsonFileState(MemoryState):
    """State persisted to a JSON file so it survives process restarts.

    Every write rewrites the whole file through a temporary file and an
    atomic rename.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        initial: dict[str, Any] = {}
        if self.path.exists():
            text = self.path.read_text(encoding="utf-8").strip()
            if text:
                initial = json.loads(text)
        super().__init__(initial)

    def set(self, key: str, value: Any) -> None:
        super().set(key, value)
        self._flush()

    def delete(self, key: str) -> None:
        super().delete(key)
        self._flush()

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._values, sort_keys=True, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)
        self.path.chmod(0o600)
