import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

import requests

from anytrack import service_client
from anytrack.shared_types import OperationKind


def _response(payload=None, *, status: int = 200, invalid: bool = False) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    if invalid:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


class TestParseServiceResponse(unittest.TestCase):
    def test_keeps_known_keys_only(self) -> None:
        parsed = service_client.parse_service_response(
            {"success": True, "file_id": "abc.mp3", "original_name": "a.wav", "extra": 1}
        )
        self.assertEqual(
            parsed,
            {"success": True, "file_id": "abc.mp3", "original_name": "a.wav"},
        )

    def test_rejects_non_objects(self) -> None:
        with self.assertRaises(service_client.ServiceTransportError):
            service_client.parse_service_response(["success"])


class TestConversionServiceClient(unittest.TestCase):
    def setUp(self) -> None:
        self.session = MagicMock()
        self.client = service_client.ConversionServiceClient(
            "http://svc/",
            session=self.session,
            timeout=5.0,
        )

    def test_multipart_request_posts_file_and_fields(self) -> None:
        self.session.post.return_value = _response(
            {"success": True, "file_id": "abc.mp3", "original_name": "in.wav"}
        )
        with tempfile.TemporaryDirectory() as tmp:
            source = Path(tmp) / "in.wav"
            source.write_bytes(b"RIFF")
            result = self.client.convert(
                {
                    "kind": OperationKind.FILE_CONVERT,
                    "endpoint": "/api/convert",
                    "fields": {"format": "mp3", "quality": "192"},
                    "file_path": source,
                    "json_body": None,
                }
            )

        self.assertEqual(result["file_id"], "abc.mp3")
        args, kwargs = self.session.post.call_args
        self.assertEqual(args, ("http://svc/api/convert",))
        self.assertEqual(kwargs["data"], {"format": "mp3", "quality": "192"})
        self.assertEqual(kwargs["timeout"], 5.0)
        name, handle, content_type = kwargs["files"]["file"]
        self.assertEqual(name, "in.wav")
        self.assertTrue(handle.closed)
        self.assertIn("wav", content_type)

    def test_json_request(self) -> None:
        self.session.post.return_value = _response({"success": False, "message": "bad url"})
        result = self.client.convert(
            {
                "kind": OperationKind.URL_CONVERT,
                "endpoint": "/api/youtube",
                "fields": {},
                "file_path": None,
                "json_body": {"url": "https://youtu.be/x", "format": "mp3", "quality": "192"},
            }
        )
        self.assertEqual(result, {"success": False, "message": "bad url"})
        kwargs = self.session.post.call_args.kwargs
        self.assertEqual(kwargs["json"]["url"], "https://youtu.be/x")
        self.assertNotIn("files", kwargs)

    def test_connection_error_becomes_transport_error(self) -> None:
        self.session.post.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(service_client.ServiceTransportError):
            self.client.convert(
                {
                    "kind": OperationKind.URL_CONVERT,
                    "endpoint": "/api/youtube",
                    "fields": {},
                    "file_path": None,
                    "json_body": {},
                }
            )

    def test_missing_source_file_becomes_transport_error(self) -> None:
        with self.assertRaises(service_client.ServiceTransportError) as ctx:
            self.client.convert(
                {
                    "kind": OperationKind.METADATA_EDIT,
                    "endpoint": "/api/metadata",
                    "fields": {},
                    "file_path": Path("/no/such/file.mp3"),
                    "json_body": None,
                }
            )
        self.assertIn("Could not read", str(ctx.exception))
        self.session.post.assert_not_called()

    def test_non_json_body_becomes_transport_error(self) -> None:
        self.session.post.return_value = _response(status=502, invalid=True)
        with self.assertRaises(service_client.ServiceTransportError) as ctx:
            self.client.convert(
                {
                    "kind": OperationKind.URL_CONVERT,
                    "endpoint": "/api/youtube",
                    "fields": {},
                    "file_path": None,
                    "json_body": {},
                }
            )
        self.assertIn("HTTP 502", str(ctx.exception))

    def test_health(self) -> None:
        self.session.get.return_value = _response({"status": "healthy"})
        self.assertEqual(self.client.health(), {"status": "healthy"})
        self.session.get.assert_called_once_with("http://svc/health", timeout=5.0)

    def test_download_url(self) -> None:
        self.assertEqual(self.client.download_url("abc.mp3"), "http://svc/api/download/abc.mp3")


if __name__ == "__main__":
    unittest.main()
