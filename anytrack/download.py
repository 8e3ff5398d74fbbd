from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path
from typing import BinaryIO

import requests

from .core import filenames as core_filenames
from .core.artifacts import DownloadArtifact

logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_BYTES = 64 * 1024
PART_SUFFIX = ".part"


class DownloadError(RuntimeError):
    """Raised when a produced artifact cannot be fetched or written locally."""


def _stream_to(
    handle: BinaryIO,
    url: str,
    *,
    session: requests.Session,
    timeout: float | None,
    chunk_size: int,
) -> int:
    written = 0
    with session.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        for chunk in response.iter_content(chunk_size=chunk_size):
            if not chunk:
                continue
            handle.write(chunk)
            written += len(chunk)
    return written


def save_artifact(
    artifact: DownloadArtifact,
    output_dir: Path,
    *,
    session: requests.Session,
    timeout: float | None = None,
    chunk_size: int = DOWNLOAD_CHUNK_BYTES,
) -> Path:
    """Fetch the artifact and store it under its normalized filename.

    Bytes land in a hidden ``.part`` file first; it is renamed into place only
    after the transfer completes and is removed on every other path.
    """
    target_dir = Path(output_dir).expanduser()
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        fd, part_name = tempfile.mkstemp(
            prefix=".anytrack-",
            suffix=PART_SUFFIX,
            dir=target_dir,
        )
    except OSError as exc:
        raise DownloadError(f"Cannot write to {target_dir}: {exc}") from exc

    part_path = Path(part_name)
    start_ts = time.time()
    try:
        with os.fdopen(fd, "wb") as handle:
            written = _stream_to(
                handle,
                artifact.download_url,
                session=session,
                timeout=timeout,
                chunk_size=chunk_size,
            )
        target = core_filenames.unique_output_path(target_dir, artifact.normalized_filename)
        os.replace(part_path, target)
    except requests.RequestException as exc:
        raise DownloadError(str(exc)) from exc
    except OSError as exc:
        raise DownloadError(f"Cannot save {artifact.normalized_filename}: {exc}") from exc
    finally:
        part_path.unlink(missing_ok=True)

    logger.info(
        "Saved %s (%d bytes) in %.1fs",
        target,
        written,
        time.time() - start_ts,
    )
    return target
