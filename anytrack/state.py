from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .shared_types import OperationKind, Phase

DEFAULT_FORMAT = "mp3"
DEFAULT_QUALITY_KBPS = 192


@dataclass(slots=True)
class AdvancedOptions:
    bitrate_mode: str = "constant"
    sample_rate_hz: int = 44100
    channels: int = 2
    fade_in: bool = False
    fade_out: bool = False
    reverse: bool = False


@dataclass(slots=True)
class MetadataFields:
    artist: str = ""
    title: str = ""
    album: str = ""
    genre: str = ""


@dataclass(slots=True)
class FormState:
    active_mode: OperationKind = OperationKind.FILE_CONVERT
    source_file: Path | None = None
    source_url: str = ""
    target_format: str = DEFAULT_FORMAT
    quality_kbps: int = DEFAULT_QUALITY_KBPS
    advanced: AdvancedOptions = field(default_factory=AdvancedOptions)
    metadata: MetadataFields = field(default_factory=MetadataFields)


@dataclass(slots=True)
class OperationState:
    phase: Phase = Phase.IDLE
    progress_percent: float = 0.0
    status_message: str = ""
    result_file_id: str | None = None
    result_original_name: str | None = None

    def reset(self) -> None:
        self.phase = Phase.IDLE
        self.progress_percent = 0.0
        self.status_message = ""
        self.result_file_id = None
        self.result_original_name = None
