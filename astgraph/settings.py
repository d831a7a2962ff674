"""Run settings, loadable from a JSON settings file.

The file holds a top-level ``"settings"`` object::

    {
        "settings": {
            "strict": true,
            "include_tests": false,
            "exclude_dirs": ["vendor", "testdata", "third_party"]
        }
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Union

# Looked up inside the repository directory when no file is given.
SETTINGS_FILENAME = "astgraph.json"

# Directories the go tool itself ignores, plus vendored code.
DEFAULT_EXCLUDE_DIRS = ("vendor", "testdata")


@dataclass(frozen=True)
class Settings:
    verbose: bool = False
    # Raise on any per-file extraction failure and report unresolved
    # cross-references as warnings.
    strict: bool = False
    include_tests: bool = True
    exclude_dirs: tuple[str, ...] = field(default=DEFAULT_EXCLUDE_DIRS)
    # Optional .kgl file written after a successful parse.
    export_path: str | None = None

    def override(self, **changes: Any) -> "Settings":
        """Return a copy with every non-None value in ``changes`` applied."""
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes) if changes else self


def load_settings(path: Union[str, Path]) -> Settings:
    """Read settings from a JSON file.

    Raises:
        FileNotFoundError: If the file is missing.
        ValueError: If the JSON is malformed or holds unknown keys.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Malformed settings file {path}: {e}") from e

    return settings_from_dict(raw.get("settings", {}))


def settings_from_dict(raw: dict[str, Any]) -> Settings:
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(unknown)}")

    values = dict(raw)
    if "exclude_dirs" in values:
        values["exclude_dirs"] = tuple(values["exclude_dirs"])
    return Settings(**values)


def discover_settings(repo_dir: Union[str, Path]) -> Settings:
    """Load ``<repo_dir>/astgraph.json`` if present, else defaults."""
    candidate = Path(repo_dir) / SETTINGS_FILENAME
    if candidate.is_file():
        return load_settings(candidate)
    return Settings()
