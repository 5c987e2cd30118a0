"""Configuration helpers for locating the annotation file."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_EXPORT_FILENAME = "image_annotations.json"


@dataclass(frozen=True)
class ReviewConfig:
    export_path: Path
    log_file: Optional[Path] = None


def default_export_path() -> Path:
    return Path.cwd() / DEFAULT_EXPORT_FILENAME


def load_config(export_path: Optional[Path] = None, log_file: Optional[Path] = None) -> ReviewConfig:
    if export_path:
        resolved_export_path = Path(export_path).expanduser()
        resolved_export_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        resolved_export_path = default_export_path()
    resolved_log_file = Path(log_file).expanduser() if log_file else None
    if resolved_log_file:
        resolved_log_file.parent.mkdir(parents=True, exist_ok=True)
    return ReviewConfig(export_path=resolved_export_path, log_file=resolved_log_file)
