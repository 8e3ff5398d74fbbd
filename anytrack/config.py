from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_API_URL = "http://localhost:8080"
API_URL_ENV = "ANYTRACK_API_URL"
OUTPUT_DIR_ENV = "ANYTRACK_OUTPUT_DIR"
TIMEOUT_ENV = "ANYTRACK_TIMEOUT"
HISTORY_FILE_ENV = "ANYTRACK_HISTORY_FILE"
DEFAULT_HISTORY_FILE = Path.home() / ".anytrack_history.json"


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    output_dir: Path = Path(".")
    request_timeout_s: float | None = None
    history_path: Path = DEFAULT_HISTORY_FILE


def normalize_api_url(value: str | None) -> str:
    clean = (value or "").strip().rstrip("/")
    return clean or DEFAULT_API_URL


def parse_timeout(value: str | None) -> float | None:
    # No timeout unless one is configured; a hung call stays in flight.
    try:
        parsed = float((value or "").strip())
    except ValueError:
        return None
    if parsed <= 0:
        return None
    return parsed


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    source = os.environ if env is None else env
    output_dir = (source.get(OUTPUT_DIR_ENV) or "").strip()
    history_file = (source.get(HISTORY_FILE_ENV) or "").strip()
    return Settings(
        api_url=normalize_api_url(source.get(API_URL_ENV)),
        output_dir=Path(output_dir).expanduser() if output_dir else Path("."),
        request_timeout_s=parse_timeout(source.get(TIMEOUT_ENV)),
        history_path=Path(history_file).expanduser() if history_file else DEFAULT_HISTORY_FILE,
    )
