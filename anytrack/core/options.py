from __future__ import annotations

from ..state import DEFAULT_QUALITY_KBPS, AdvancedOptions, MetadataFields

AUDIO_FORMATS = ("mp3", "wav", "flac", "ogg", "aac", "m4a")
LOSSY_FORMATS = frozenset({"mp3", "ogg", "aac", "m4a"})
BITRATE_MODES = ("constant", "variable")
SAMPLE_RATES = (8000, 11025, 16000, 22050, 32000, 44100, 48000, 96000)
CHANNEL_COUNTS = (1, 2)
EFFECT_FLAGS = ("fade_in", "fade_out", "reverse")
METADATA_KEYS = ("artist", "title", "album", "genre")

QUALITY_MIN_KBPS = 64
QUALITY_MAX_KBPS = 320
QUALITY_STEP_KBPS = 32


def parse_int_setting(
    value: str,
    *,
    default: int,
    minimum: int,
    maximum: int,
) -> int:
    try:
        parsed = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    return max(minimum, min(maximum, parsed))


def parse_quality(value: object, *, default: int = DEFAULT_QUALITY_KBPS) -> int:
    parsed = parse_int_setting(
        str(value),
        default=default,
        minimum=QUALITY_MIN_KBPS,
        maximum=QUALITY_MAX_KBPS,
    )
    # Snap onto the 64..320 slider grid.
    steps = round((parsed - QUALITY_MIN_KBPS) / QUALITY_STEP_KBPS)
    return QUALITY_MIN_KBPS + steps * QUALITY_STEP_KBPS


def normalize_format(value: str) -> str:
    fmt = (value or "").strip().lower().lstrip(".")
    if fmt not in AUDIO_FORMATS:
        raise ValueError(f"Unsupported output format: {value!r}")
    return fmt


def is_lossy_format(value: str) -> bool:
    return (value or "").strip().lower() in LOSSY_FORMATS


def _int_choice(value: object, choices: tuple[int, ...], label: str) -> int:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {label}: {value!r}") from None
    if parsed not in choices:
        raise ValueError(f"Unsupported {label}: {parsed}")
    return parsed


def coerce_advanced_value(name: str, value: object) -> object:
    if name == "bitrate_mode":
        mode = str(value or "").strip().lower()
        if mode not in BITRATE_MODES:
            raise ValueError(f"Unsupported bitrate mode: {value!r}")
        return mode
    if name == "sample_rate_hz":
        return _int_choice(value, SAMPLE_RATES, "sample rate")
    if name == "channels":
        return _int_choice(value, CHANNEL_COUNTS, "channel count")
    if name in EFFECT_FLAGS:
        return bool(value)
    raise ValueError(f"Unknown advanced option: {name}")


def form_bool(value: bool) -> str:
    return "true" if value else "false"


def advanced_form_fields(options: AdvancedOptions) -> dict[str, str]:
    return {
        "bitrate_mode": options.bitrate_mode,
        "sample_rate": str(options.sample_rate_hz),
        "channels": str(options.channels),
        "fade_in": form_bool(options.fade_in),
        "fade_out": form_bool(options.fade_out),
        "reverse": form_bool(options.reverse),
    }


def metadata_form_fields(metadata: MetadataFields) -> dict[str, str]:
    fields: dict[str, str] = {}
    for key in METADATA_KEYS:
        value = str(getattr(metadata, key) or "").strip()
        if value:
            fields[key] = value
    return fields
