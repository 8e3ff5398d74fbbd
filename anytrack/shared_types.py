from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, TypedDict


class OperationKind(str, Enum):
    FILE_CONVERT = "convert"
    URL_CONVERT = "youtube"
    METADATA_EDIT = "metadata"


class Phase(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ServiceResponse(TypedDict, total=False):
    success: bool
    file_id: str
    original_name: str
    message: str


class ServiceRequest(TypedDict):
    kind: OperationKind
    endpoint: str
    fields: dict[str, str]
    file_path: Path | None
    json_body: dict[str, Any] | None


class HistoryItem(TypedDict, total=False):
    timestamp: str
    path: str
    name: str
    source: str
