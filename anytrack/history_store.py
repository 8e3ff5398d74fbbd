from __future__ import annotations

import json
import logging
from pathlib import Path

from .shared_types import HistoryItem

logger = logging.getLogger(__name__)

MAX_HISTORY_ENTRIES = 200


def normalize_output_path(output_path: Path) -> str:
    if not output_path:
        return ""
    try:
        return str(output_path.expanduser().resolve(strict=False))
    except (OSError, RuntimeError, ValueError):
        return str(output_path)


def upsert_history_entry(
    history: list[HistoryItem],
    *,
    normalized_path: str,
    source: str,
    timestamp: str,
    max_entries: int = MAX_HISTORY_ENTRIES,
) -> None:
    if not normalized_path:
        return
    file_name = Path(normalized_path).name

    for idx, item in enumerate(history):
        if item.get("path", "") != normalized_path:
            continue
        item["timestamp"] = timestamp
        item["name"] = file_name
        item["source"] = source
        if idx > 0:
            history.pop(idx)
            history.insert(0, item)
        return

    history.insert(
        0,
        {
            "timestamp": timestamp,
            "path": normalized_path,
            "name": file_name,
            "source": source,
        },
    )
    del history[max(1, int(max_entries)):]


def load_history(path: Path) -> list[HistoryItem]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return []
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable history file %s: %s", path, exc)
        return []
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict) and item.get("path")]


def save_history(path: Path, history: list[HistoryItem]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(history, indent=2), encoding="utf-8")
    except OSError as exc:
        logger.error("Failed to save history to %s: %s", path, exc)
