"""Helper utilities for calling the AnyTrack conversion service."""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Any, Optional

import requests

from .core.artifacts import download_url_for
from .core.request_plan import HEALTH_ENDPOINT
from .shared_types import ServiceRequest, ServiceResponse

logger = logging.getLogger(__name__)


class ServiceTransportError(RuntimeError):
    """Raised when the service cannot be reached or its reply cannot be read."""


def parse_service_response(data: Any) -> ServiceResponse:
    """Coerce a decoded JSON body into the response shape the controller reads."""
    if not isinstance(data, dict):
        raise ServiceTransportError("Service response is not a JSON object.")
    response: ServiceResponse = {"success": bool(data.get("success"))}
    for key in ("file_id", "original_name", "message"):
        value = data.get(key)
        if value is not None:
            response[key] = str(value)
    return response


def _content_type(path: Path) -> str:
    guessed, _encoding = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


class ConversionServiceClient:
    """Thin ``requests`` wrapper around the conversion service endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    def download_url(self, file_id: str) -> str:
        return download_url_for(self.base_url, file_id)

    def convert(self, request: ServiceRequest) -> ServiceResponse:
        """Send one operation request and return the parsed reply.

        Multipart requests stream the selected file; the handle is closed
        before this returns. ``success: false`` replies are returned, not
        raised, whatever their HTTP status.
        """
        url = self.url_for(request["endpoint"])
        file_path = request["file_path"]
        logger.info("Submitting %s request to %s", request["kind"].value, url)

        try:
            if file_path is not None:
                response = self._post_multipart(url, Path(file_path), request["fields"])
            else:
                response = self.session.post(
                    url,
                    json=request["json_body"] or {},
                    timeout=self.timeout,
                )
        except requests.RequestException as exc:
            raise ServiceTransportError(str(exc)) from exc
        except OSError as exc:
            raise ServiceTransportError(f"Could not read {file_path}: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise ServiceTransportError(
                f"Service returned an invalid response (HTTP {response.status_code})."
            ) from exc

        parsed = parse_service_response(data)
        logger.info(
            "Service replied HTTP %s success=%s",
            response.status_code,
            parsed["success"],
        )
        return parsed

    def _post_multipart(
        self,
        url: str,
        file_path: Path,
        fields: dict[str, str],
    ) -> requests.Response:
        with open(file_path, "rb") as handle:
            files = {"file": (file_path.name, handle, _content_type(file_path))}
            return self.session.post(
                url,
                data=dict(fields),
                files=files,
                timeout=self.timeout,
            )

    def health(self) -> dict[str, Any]:
        url = self.url_for(HEALTH_ENDPOINT)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ServiceTransportError(str(exc)) from exc
        try:
            data = response.json()
        except ValueError as exc:
            raise ServiceTransportError("Health response is not valid JSON.") from exc
        if not isinstance(data, dict):
            raise ServiceTransportError("Health response is not a JSON object.")
        return data
