from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, urlparse

from . import filenames as core_filenames
from .request_plan import DOWNLOAD_ENDPOINT


@dataclass(frozen=True)
class DownloadArtifact:
    file_id: str
    download_url: str
    preview_url: str
    extension: str
    normalized_filename: str


def download_url_for(base_url: str, file_id: str) -> str:
    return f"{(base_url or '').rstrip('/')}{DOWNLOAD_ENDPOINT}/{quote(file_id, safe='')}"


def extension_from_url(url: str) -> str:
    try:
        path = urlparse(url).path
    except ValueError:
        path = url or ""
    segment = path.rsplit("/", 1)[-1]
    _head, dot, tail = segment.rpartition(".")
    if not dot:
        return ""
    return tail.lower()


def build_artifact(
    *,
    base_url: str,
    file_id: str,
    original_name: str | None,
    fallback_name: str,
    fallback_extension: str,
) -> DownloadArtifact:
    url = download_url_for(base_url, file_id)
    name = (original_name or "").strip() or fallback_name
    extension = (
        extension_from_url(url)
        or core_filenames.split_extension(name)[1]
        or (fallback_extension or "").lower()
    )
    return DownloadArtifact(
        file_id=file_id,
        download_url=url,
        preview_url=url,
        extension=extension,
        normalized_filename=core_filenames.artifact_filename(name, extension),
    )
