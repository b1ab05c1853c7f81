from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def ensure_dir(dir_path: Path) -> Path:
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def write_markdown(dir_path: Path, filename: str, content: str) -> Path:
    target = ensure_dir(dir_path) / filename
    target.write_text(content, encoding="utf-8")
    return target


def write_json(dir_path: Path, filename: str, data: Any) -> Path:
    target = ensure_dir(dir_path) / filename
    target.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return target
