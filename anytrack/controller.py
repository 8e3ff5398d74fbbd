from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from . import history_store
from .core import options as core_options
from .core import ui_state as core_ui_state
from .core import workflow as core_workflow
from .core.artifacts import DownloadArtifact, build_artifact
from .core.progress import (
    COMPLETE_PERCENT,
    PARSING_PERCENT,
    ProgressHandle,
    ProgressSimulator,
)
from .download import save_artifact
from .scheduling import Scheduler, Spawner, spawn_daemon
from .service_client import ConversionServiceClient
from .shared_types import HistoryItem, OperationKind, Phase, ServiceRequest, ServiceResponse
from .state import FormState, OperationState

logger = logging.getLogger(__name__)


class OperationController:
    """Owns the form, the single in-flight operation and its result.

    Every public method and every state change runs on the scheduler's owner
    thread. The blocking service call runs on a spawned worker whose outcome
    is posted back through ``scheduler.post``.
    """

    def __init__(
        self,
        *,
        client: ConversionServiceClient,
        scheduler: Scheduler,
        spawn: Spawner = spawn_daemon,
        simulator: ProgressSimulator | None = None,
        log: Callable[[str], None] | None = None,
        history: list[HistoryItem] | None = None,
        history_path: Path | None = None,
    ) -> None:
        self.form = FormState()
        self.operation = OperationState()
        self.download_message = ""
        self.is_saving = False
        self.last_saved_path: Path | None = None
        self.history: list[HistoryItem] = history if history is not None else []

        self._client = client
        self._scheduler = scheduler
        self._spawn = spawn
        self._simulator = simulator or ProgressSimulator(scheduler)
        self._log_sink = log
        self._history_path = history_path
        self._listeners: list[Callable[[], None]] = []
        self._progress: ProgressHandle | None = None
        self._artifact: DownloadArtifact | None = None
        self._token = 0
        self._closed = False
        self._fallback_name = ""
        self._fallback_extension = ""
        self._success_message = ""

    # -- observation -------------------------------------------------------

    def on_change(self, callback: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    def _log(self, line: str) -> None:
        logger.debug(line)
        if self._log_sink is not None:
            self._log_sink(line)

    @property
    def is_busy(self) -> bool:
        return self.operation.phase == Phase.IN_FLIGHT

    @property
    def artifact(self) -> DownloadArtifact | None:
        if self.operation.phase != Phase.SUCCEEDED:
            return None
        return self._artifact

    def controls(self) -> core_ui_state.ControlState:
        return core_ui_state.compute_control_state(
            mode=self.form.active_mode,
            phase=self.operation.phase,
            file_selected=self.form.source_file is not None,
            url_present=bool(self.form.source_url.strip()),
            target_format=self.form.target_format,
            has_artifact=self.artifact is not None and not self.is_saving,
        )

    # -- form updates ------------------------------------------------------

    def set_mode(self, mode: OperationKind | str) -> bool:
        if self.is_busy:
            return False
        kind = OperationKind(mode)
        if kind == self.form.active_mode:
            return True
        self.form.active_mode = kind
        self._clear_result()
        self._notify()
        return True

    def set_source_file(self, path: Path | str | None) -> bool:
        if self.is_busy:
            return False
        self.form.source_file = Path(path).expanduser() if path else None
        self._clear_result()
        self._notify()
        return True

    def set_source_url(self, url: str) -> bool:
        if self.is_busy:
            return False
        self.form.source_url = url or ""
        self._notify()
        return True

    def set_target_format(self, fmt: str) -> bool:
        if self.is_busy:
            return False
        self.form.target_format = core_options.normalize_format(fmt)
        self._notify()
        return True

    def set_quality(self, kbps: int | str) -> bool:
        if self.is_busy:
            return False
        self.form.quality_kbps = core_options.parse_quality(kbps, default=self.form.quality_kbps)
        self._notify()
        return True

    def set_advanced(self, **changes: Any) -> bool:
        if self.is_busy:
            return False
        coerced = {
            name: core_options.coerce_advanced_value(name, value)
            for name, value in changes.items()
        }
        for name, value in coerced.items():
            setattr(self.form.advanced, name, value)
        self._notify()
        return True

    def set_metadata(self, **changes: str | None) -> bool:
        if self.is_busy:
            return False
        unknown = sorted(set(changes) - set(core_options.METADATA_KEYS))
        if unknown:
            raise ValueError(f"Unknown metadata field(s): {', '.join(unknown)}")
        for name, value in changes.items():
            setattr(self.form.metadata, name, value or "")
        self._notify()
        return True

    # -- operation lifecycle -----------------------------------------------

    def _stop_progress(self) -> None:
        handle, self._progress = self._progress, None
        if handle is not None:
            handle.cancel()

    def _clear_result(self) -> None:
        self._stop_progress()
        self.operation.reset()
        self._artifact = None
        self.download_message = ""
        self.is_saving = False
        # Outcomes still queued for the cleared result are now stale.
        self._token += 1

    def submit(self) -> bool:
        if self._closed:
            return False
        if self.is_busy:
            self._log("[busy] An operation is already running.")
            return False

        spec = core_workflow.operation_spec(self.form.active_mode)
        self._clear_result()
        issue = spec.check(self.form)
        if issue is not None:
            message = core_workflow.start_error_text(issue)
            self.operation.phase = Phase.FAILED
            self.operation.status_message = message
            self._log(f"[invalid] {message}")
            self._notify()
            return False

        request = spec.build_request(self.form)
        self._token += 1
        token = self._token
        self._fallback_name = spec.default_result_name(self.form)
        self._fallback_extension = self.form.target_format
        self._success_message = spec.success_message

        self.operation.phase = Phase.IN_FLIGHT
        self._log(f"[start] {spec.kind.value} {request['endpoint']}")
        self._progress = self._simulator.start(spec.progress, self._on_progress_tick)
        self._notify()
        self._spawn(lambda: self._run_request(token, request))
        return True

    def _run_request(self, token: int, request: ServiceRequest) -> None:
        # Worker thread: touch no state here, only post back.
        try:
            response = self._client.convert(request)
        except Exception as exc:  # broad to surface in UI
            logger.debug("Request failed", exc_info=True)
            self._scheduler.post(self._on_error, token, str(exc) or type(exc).__name__)
            return
        self._scheduler.post(self._on_response, token, response)

    def _is_current(self, token: int) -> bool:
        return (not self._closed) and token == self._token and self.is_busy

    def _on_progress_tick(self, percent: float) -> None:
        if not self.is_busy:
            return
        self.operation.progress_percent = max(self.operation.progress_percent, percent)
        self._notify()

    def _on_response(self, token: int, response: ServiceResponse) -> None:
        if not self._is_current(token):
            return
        self._stop_progress()
        self.operation.progress_percent = max(self.operation.progress_percent, PARSING_PERCENT)
        self._notify()

        if not response.get("success"):
            self._fail(response.get("message") or "")
            return
        file_id = (response.get("file_id") or "").strip()
        if not file_id:
            self._fail("Service response did not include a file id")
            return

        original_name = response.get("original_name")
        self._artifact = build_artifact(
            base_url=self._client.base_url,
            file_id=file_id,
            original_name=original_name,
            fallback_name=self._fallback_name,
            fallback_extension=self._fallback_extension,
        )
        self.operation.phase = Phase.SUCCEEDED
        self.operation.progress_percent = COMPLETE_PERCENT
        self.operation.result_file_id = file_id
        self.operation.result_original_name = original_name or self._fallback_name
        self.operation.status_message = self._success_message
        self._log(f"[done] {self._success_message} {self._artifact.download_url}")
        self._notify()

    def _on_error(self, token: int, message: str) -> None:
        if not self._is_current(token):
            return
        self._stop_progress()
        self._fail(message)

    def _fail(self, message: str) -> None:
        self.operation.phase = Phase.FAILED
        self.operation.progress_percent = 0.0
        self.operation.result_file_id = None
        self.operation.result_original_name = None
        self.operation.status_message = core_workflow.failure_text(message)
        self._artifact = None
        self._log(f"[error] {self.operation.status_message}")
        self._notify()

    # -- result consumption ------------------------------------------------

    def start_download(self, output_dir: Path) -> bool:
        artifact = self.artifact
        if artifact is None or self.is_saving or self._closed:
            return False
        self.is_saving = True
        self.download_message = ""
        self._log(f"[download] {artifact.download_url}")
        self._notify()
        token = self._token
        target_dir = Path(output_dir)
        self._spawn(lambda: self._run_download(token, artifact, target_dir))
        return True

    def _run_download(
        self,
        token: int,
        artifact: DownloadArtifact,
        output_dir: Path,
    ) -> None:
        try:
            path = save_artifact(
                artifact,
                output_dir,
                session=self._client.session,
                timeout=self._client.timeout,
            )
        except Exception as exc:  # broad so is_saving always clears
            logger.debug("Download failed", exc_info=True)
            self._scheduler.post(
                self._on_download_failed,
                token,
                str(exc) or type(exc).__name__,
            )
            return
        self._scheduler.post(self._on_download_saved, token, path, artifact)

    def _is_current_save(self, token: int) -> bool:
        return (not self._closed) and token == self._token and self.is_saving

    def _on_download_saved(self, token: int, path: Path, artifact: DownloadArtifact) -> None:
        if not self._is_current_save(token):
            logger.debug("Dropping stale save of %s", path)
            return
        self.is_saving = False
        self.last_saved_path = path
        self.download_message = f"Saved {path.name}"
        self._record_history(path, artifact)
        self._log(f"[download] Saved {path}")
        self._notify()

    def _on_download_failed(self, token: int, message: str) -> None:
        if not self._is_current_save(token):
            return
        self.is_saving = False
        self.download_message = f"Download failed: {message}"
        self._log(f"[error] {self.download_message}")
        self._notify()

    def _record_history(self, path: Path, artifact: DownloadArtifact) -> None:
        history_store.upsert_history_entry(
            self.history,
            normalized_path=history_store.normalize_output_path(path),
            source=artifact.download_url,
            timestamp=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        )
        if self._history_path is not None:
            history_store.save_history(self._history_path, self.history)

    def shutdown(self) -> None:
        self._closed = True
        self._stop_progress()
        self._listeners.clear()
