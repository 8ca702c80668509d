"""JSON/YAML override files shared by weights and lexicon loading."""

import json
from pathlib import Path
from typing import Any

import yaml

SUPPORTED_SUFFIXES = (".json", ".yaml", ".yml")


def _check_suffix(path: Path) -> None:
    if path.suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(f"Unsupported file format: {path.suffix}. Use .json, .yaml, or .yml")


def read_config_file(filepath: str, kind: str = "Config") -> dict[str, Any]:
    """Read a mapping from a JSON or YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the format is unsupported or the file is not a mapping
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"{kind} file not found: {filepath}")
    _check_suffix(path)

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f) if path.suffix == ".json" else yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{kind} file {filepath} must hold a mapping, got {type(data).__name__}")
    return data


def write_config_file(data: dict[str, Any], filepath: str) -> None:
    """Write a mapping as JSON or YAML depending on the file extension."""
    path = Path(filepath)
    _check_suffix(path)

    with open(path, "w", encoding="utf-8") as f:
        if path.suffix == ".json":
            json.dump(data, f, indent=2, ensure_ascii=False)
        else:
            yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True)
