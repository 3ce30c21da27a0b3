import json
import uuid
from pathlib import Path
from typing import Any

import yaml

from block_conditions.constants import YAML_SUFFIXES


def new_condition_id() -> str:
    return str(uuid.uuid4())


def is_yaml_path(path: Path) -> bool:
    return path.suffix.lower() in YAML_SUFFIXES


def read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def read_structured(path: Path) -> Any:
    if is_yaml_path(path):
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    return read_json(path)


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, sort_keys=False)
        handle.write("\n")


def write_structured(path: Path, payload: Any) -> None:
    if not is_yaml_path(path):
        write_json(path, payload)
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.safe_dump(payload, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )


def compact_home_path(path: str | Path) -> str:
    text = str(path)
    home = str(Path.home())
    if text == home:
        return "~"
    home_prefix = f"{home}/"
    if text.startswith(home_prefix):
        return f"~/{text[len(home_prefix):]}"
    return text


def parse_assignment(raw: str) -> tuple[str, str]:
    """Split a ``NAME=VALUE`` command line pair."""
    name, sep, value = raw.partition("=")
    if not sep or not name.strip():
        raise ValueError(f"Expected NAME=VALUE, got: {raw}")
    return name.strip(), value
