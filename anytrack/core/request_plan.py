from __future__ import annotations

from ..shared_types import OperationKind, ServiceRequest
from ..state import FormState
from . import options as core_options
from . import urls as core_urls

CONVERT_ENDPOINT = "/api/convert"
YOUTUBE_ENDPOINT = "/api/youtube"
METADATA_ENDPOINT = "/api/metadata"
DOWNLOAD_ENDPOINT = "/api/download"
HEALTH_ENDPOINT = "/health"


def build_convert_request(form: FormState) -> ServiceRequest:
    fields = {
        "format": form.target_format,
        "quality": str(form.quality_kbps),
    }
    fields.update(core_options.advanced_form_fields(form.advanced))
    return {
        "kind": OperationKind.FILE_CONVERT,
        "endpoint": CONVERT_ENDPOINT,
        "fields": fields,
        "file_path": form.source_file,
        "json_body": None,
    }


def build_youtube_request(form: FormState) -> ServiceRequest:
    # Effects are not part of the remote-source contract; only these three go out.
    return {
        "kind": OperationKind.URL_CONVERT,
        "endpoint": YOUTUBE_ENDPOINT,
        "fields": {},
        "file_path": None,
        "json_body": {
            "url": core_urls.normalize_source_url(form.source_url),
            "format": form.target_format,
            "quality": str(form.quality_kbps),
        },
    }


def build_metadata_request(form: FormState) -> ServiceRequest:
    return {
        "kind": OperationKind.METADATA_EDIT,
        "endpoint": METADATA_ENDPOINT,
        "fields": core_options.metadata_form_fields(form.metadata),
        "file_path": form.source_file,
        "json_body": None,
    }
