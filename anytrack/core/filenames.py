from __future__ import annotations

import re
from pathlib import Path

from .options import AUDIO_FORMATS

ANYTRACK_SUFFIX = "_anytrack"

# Containers the service accepts as input besides the output formats.
SOURCE_EXTENSIONS = frozenset(AUDIO_FORMATS) | {
    "aif",
    "aiff",
    "mkv",
    "mov",
    "mp4",
    "oga",
    "opus",
    "weba",
    "webm",
    "wma",
}

_EXTENSION_RE = re.compile(r"\.([A-Za-z0-9]{1,5})$")


def normalize_filename(value: str) -> str:
    slug = (value or "").lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def split_extension(
    name: str,
    *,
    known: frozenset[str] | set[str] = SOURCE_EXTENSIONS,
) -> tuple[str, str]:
    clean = (name or "").strip()
    match = _EXTENSION_RE.search(clean)
    if match is None or match.start() == 0:
        return clean, ""
    ext = match.group(1).lower()
    # "Live vol.2" keeps its tail; only media extensions are split off.
    if ext not in known:
        return clean, ""
    return clean[: match.start()], ext


def artifact_filename(original_name: str, extension: str) -> str:
    ext = (extension or "").strip().lstrip(".")
    stem, _source_ext = split_extension(
        original_name,
        known=SOURCE_EXTENSIONS | {ext.lower()} if ext else SOURCE_EXTENSIONS,
    )
    name = f"{normalize_filename(stem)}{ANYTRACK_SUFFIX}"
    if not ext:
        return name
    return f"{name}.{ext}"


def unique_output_path(directory: Path, filename: str) -> Path:
    candidate = directory / filename
    stem, suffix = candidate.stem, candidate.suffix
    index = 1
    while candidate.exists():
        candidate = directory / f"{stem}-{index}{suffix}"
        index += 1
    return candidate
