from __future__ import annotations

from dataclasses import dataclass

from ..shared_types import OperationKind, Phase
from . import options as core_options
from . import workflow as core_workflow


@dataclass(frozen=True)
class ControlState:
    is_busy: bool
    input_ready: bool
    can_submit: bool
    inputs_enabled: bool
    mode_enabled: bool
    show_quality: bool
    show_advanced: bool
    show_metadata: bool
    can_download: bool
    can_preview: bool
    submit_label: str


def compute_control_state(
    *,
    mode: OperationKind,
    phase: Phase,
    file_selected: bool,
    url_present: bool,
    target_format: str,
    has_artifact: bool,
) -> ControlState:
    spec = core_workflow.operation_spec(mode)
    is_busy = phase == Phase.IN_FLIGHT
    is_url_mode = mode == OperationKind.URL_CONVERT
    is_metadata_mode = mode == OperationKind.METADATA_EDIT

    input_ready = url_present if is_url_mode else file_selected
    can_download = (not is_busy) and phase == Phase.SUCCEEDED and has_artifact

    return ControlState(
        is_busy=is_busy,
        input_ready=input_ready,
        can_submit=(not is_busy) and input_ready,
        inputs_enabled=not is_busy,
        mode_enabled=not is_busy,
        show_quality=(not is_metadata_mode) and core_options.is_lossy_format(target_format),
        show_advanced=mode == OperationKind.FILE_CONVERT,
        show_metadata=is_metadata_mode,
        can_download=can_download,
        can_preview=can_download,
        submit_label=spec.busy_label if is_busy else spec.idle_label,
    )
