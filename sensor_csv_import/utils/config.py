from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import yaml

DEFAULTS: Dict[str, Any] = {
    "import": {
        "suffix": ".csv",
        "encoding": "utf-8-sig",
        "null_values": ["", "null"],
        "progress": True,
    },
    "store": {
        "db_path": "data/records.db",
        "time_zone": None,
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
}


def read_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Parse one YAML file; an empty file counts as an empty mapping."""
    path = Path(path)
    # opening a missing path raises FileNotFoundError naming it
    text = path.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _overlay(target: Dict[str, Any], layer: Mapping[str, Any]) -> None:
    # sections merge key by key; scalars and lists from the layer replace
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _overlay(current, value)
        else:
            target[key] = copy.deepcopy(value)


def _load_with_extends(path: Path, seen: Tuple[Path, ...] = ()) -> Dict[str, Any]:
    path = path.resolve()
    if path in seen:
        raise ValueError(f"Config 'extends' cycle through {path}")
    cfg = read_config_file(path)

    extends = cfg.pop("extends", None)
    if extends is None:
        return cfg
    if isinstance(extends, (str, Path)):
        parents = [extends]
    elif isinstance(extends, list):
        parents = extends
    else:
        raise ValueError("Config key 'extends' must be a string or a list of strings.")

    merged: Dict[str, Any] = {}
    for parent in parents:
        parent_path = Path(parent)
        if not parent_path.is_absolute():
            parent_path = path.parent / parent_path
        _overlay(merged, _load_with_extends(parent_path, seen + (path,)))
    _overlay(merged, cfg)
    return merged


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Returns DEFAULTS overlaid with the YAML file at ``path`` (if any).

    The file may inherit from other files via:
      extends: "base.yaml"
    or
      extends:
        - "base.yaml"
        - "other.yaml"

    Paths in 'extends' are resolved relative to the file that names them.
    """
    cfg = copy.deepcopy(DEFAULTS)
    if path is None:
        return cfg

    path = Path(path)
    _overlay(cfg, _load_with_extends(path))
    cfg.setdefault("_meta", {})
    cfg["_meta"]["config_path"] = str(path.resolve())
    return cfg


def ensure_dirs(cfg: Dict[str, Any]) -> None:
    """Create parent directories of the database and the log file."""
    for section, key in (("store", "db_path"), ("logging", "file")):
        p = (cfg.get(section) or {}).get(key)
        if isinstance(p, (str, Path)) and str(p).strip():
            Path(p).parent.mkdir(parents=True, exist_ok=True)
