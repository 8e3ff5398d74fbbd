from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..shared_types import OperationKind, ServiceRequest
from ..state import FormState
from . import progress as core_progress
from . import request_plan as core_request_plan
from . import urls as core_urls

START_MESSAGE_BY_ISSUE = {
    "missing_file": "Please select a file",
    "file_not_found": "Selected file could not be found",
    "missing_url": "Please enter a YouTube URL",
}

URL_DEFAULT_RESULT_NAME = "audio"


def _file_issue(form: FormState) -> str | None:
    if form.source_file is None:
        return "missing_file"
    if not form.source_file.is_file():
        return "file_not_found"
    return None


def _url_issue(form: FormState) -> str | None:
    if not core_urls.strip_url_whitespace(form.source_url):
        return "missing_url"
    return None


def _file_result_name(form: FormState) -> str:
    return form.source_file.name if form.source_file is not None else ""


def _url_result_name(_form: FormState) -> str:
    return URL_DEFAULT_RESULT_NAME


@dataclass(frozen=True)
class OperationSpec:
    kind: OperationKind
    check: Callable[[FormState], str | None]
    build_request: Callable[[FormState], ServiceRequest]
    progress: core_progress.ProgressProfile
    default_result_name: Callable[[FormState], str]
    success_message: str
    busy_label: str
    idle_label: str


OPERATION_SPECS: dict[OperationKind, OperationSpec] = {
    OperationKind.FILE_CONVERT: OperationSpec(
        kind=OperationKind.FILE_CONVERT,
        check=_file_issue,
        build_request=core_request_plan.build_convert_request,
        progress=core_progress.FILE_CONVERT_PROFILE,
        default_result_name=_file_result_name,
        success_message="Conversion successful!",
        busy_label="Converting...",
        idle_label="Convert",
    ),
    OperationKind.URL_CONVERT: OperationSpec(
        kind=OperationKind.URL_CONVERT,
        check=_url_issue,
        build_request=core_request_plan.build_youtube_request,
        progress=core_progress.URL_CONVERT_PROFILE,
        default_result_name=_url_result_name,
        success_message="YouTube conversion successful!",
        busy_label="Converting...",
        idle_label="Convert from YouTube",
    ),
    OperationKind.METADATA_EDIT: OperationSpec(
        kind=OperationKind.METADATA_EDIT,
        check=_file_issue,
        build_request=core_request_plan.build_metadata_request,
        progress=core_progress.METADATA_EDIT_PROFILE,
        default_result_name=_file_result_name,
        success_message="Metadata updated successfully!",
        busy_label="Updating...",
        idle_label="Update Metadata",
    ),
}


def operation_spec(kind: OperationKind) -> OperationSpec:
    return OPERATION_SPECS[OperationKind(kind)]


def start_issue(form: FormState) -> str | None:
    return operation_spec(form.active_mode).check(form)


def start_error_text(issue: str) -> str:
    return START_MESSAGE_BY_ISSUE.get(issue, "Operation cannot start right now.")


def failure_text(message: str) -> str:
    clean = (message or "").strip()
    return f"Error: {clean or 'Unknown error'}"


def build_request(form: FormState) -> ServiceRequest:
    return operation_spec(form.active_mode).build_request(form)
