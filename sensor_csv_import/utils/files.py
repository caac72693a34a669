from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Union


def ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def save_json(path: Union[str, Path], obj: Any) -> None:
    path = Path(path)
    ensure_dir(path.parent)
    path.write_text(json.dumps(obj, indent=2, ensure_ascii=False), encoding="utf-8")


def count_lines(path: Path) -> int:
    with path.open("rb") as f:
        return sum(1 for _ in f)
