from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TextIO

from . import history_store, logging_setup
from .config import Settings, load_settings, normalize_api_url
from .controller import OperationController
from .core import options as core_options
from .scheduling import AsyncioScheduler
from .service_client import ConversionServiceClient, ServiceTransportError
from .shared_types import OperationKind, Phase

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_DOWNLOAD_FAILED = 3


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory the converted file is saved to (default: ANYTRACK_OUTPUT_DIR or cwd).",
    )
    parser.add_argument(
        "--no-download",
        action="store_true",
        help="Only print the download URL; do not save the file.",
    )


def _add_format_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format",
        dest="target_format",
        choices=core_options.AUDIO_FORMATS,
        default="mp3",
        help="Output format (default: mp3).",
    )
    parser.add_argument(
        "--quality",
        type=int,
        default=192,
        help="Bitrate in kbps for lossy formats, 64-320 in steps of 32 (default: 192).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="anytrack",
        description="Convert audio files or YouTube videos and edit audio tags.",
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="Conversion service base URL (default: ANYTRACK_API_URL or http://localhost:8080).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    convert = commands.add_parser("convert", help="Convert a local audio file.")
    convert.add_argument("file", type=Path)
    _add_format_arguments(convert)
    convert.add_argument(
        "--bitrate-mode",
        choices=core_options.BITRATE_MODES,
        default="constant",
    )
    convert.add_argument(
        "--sample-rate",
        type=int,
        choices=core_options.SAMPLE_RATES,
        default=44100,
    )
    convert.add_argument(
        "--channels",
        type=int,
        choices=core_options.CHANNEL_COUNTS,
        default=2,
    )
    convert.add_argument("--fade-in", action="store_true", help="Fade in over 3 seconds.")
    convert.add_argument("--fade-out", action="store_true", help="Fade out over 3 seconds.")
    convert.add_argument("--reverse", action="store_true", help="Reverse the audio.")
    _add_output_arguments(convert)

    youtube = commands.add_parser("youtube", help="Extract audio from a YouTube URL.")
    youtube.add_argument("url")
    _add_format_arguments(youtube)
    _add_output_arguments(youtube)

    metadata = commands.add_parser("metadata", help="Rewrite the tags of a local audio file.")
    metadata.add_argument("file", type=Path)
    for key in core_options.METADATA_KEYS:
        metadata.add_argument(f"--{key}", default="")
    _add_output_arguments(metadata)

    commands.add_parser("health", help="Check that the conversion service is up.")
    return parser


def _apply_form(controller: OperationController, args: argparse.Namespace) -> None:
    if args.command == "convert":
        controller.set_mode(OperationKind.FILE_CONVERT)
        controller.set_source_file(args.file)
        controller.set_target_format(args.target_format)
        controller.set_quality(args.quality)
        controller.set_advanced(
            bitrate_mode=args.bitrate_mode,
            sample_rate_hz=args.sample_rate,
            channels=args.channels,
            fade_in=args.fade_in,
            fade_out=args.fade_out,
            reverse=args.reverse,
        )
    elif args.command == "youtube":
        controller.set_mode(OperationKind.URL_CONVERT)
        controller.set_source_url(args.url)
        controller.set_target_format(args.target_format)
        controller.set_quality(args.quality)
    elif args.command == "metadata":
        controller.set_mode(OperationKind.METADATA_EDIT)
        controller.set_source_file(args.file)
        controller.set_metadata(**{key: getattr(args, key) for key in core_options.METADATA_KEYS})


class _ProgressPrinter:
    def __init__(self, controller: OperationController, stream: TextIO) -> None:
        self._controller = controller
        self._stream = stream
        self._last = -1

    def __call__(self) -> None:
        if not self._controller.is_busy:
            return
        percent = int(self._controller.operation.progress_percent)
        if percent == self._last:
            return
        self._last = percent
        self._stream.write(f"[progress] {percent}%\n")
        self._stream.flush()


async def _wait_until(
    controller: OperationController,
    predicate: Callable[[], bool],
) -> None:
    settled = asyncio.get_running_loop().create_future()

    def check() -> None:
        if predicate() and not settled.done():
            settled.set_result(None)

    unsubscribe = controller.on_change(check)
    try:
        check()
        await settled
    finally:
        unsubscribe()


async def _drive_operation(
    args: argparse.Namespace,
    client: ConversionServiceClient,
    settings: Settings,
    stream: TextIO,
) -> int:
    scheduler = AsyncioScheduler(asyncio.get_running_loop())
    controller = OperationController(
        client=client,
        scheduler=scheduler,
        log=lambda line: stream.write(f"{line}\n"),
        history=history_store.load_history(settings.history_path),
        history_path=settings.history_path,
    )
    try:
        try:
            _apply_form(controller, args)
        except ValueError as exc:
            stream.write(f"[invalid] {exc}\n")
            return EXIT_FAILED

        controller.on_change(_ProgressPrinter(controller, stream))
        if controller.submit():
            await _wait_until(controller, lambda: not controller.is_busy)

        operation = controller.operation
        print(operation.status_message)
        artifact = controller.artifact
        if operation.phase != Phase.SUCCEEDED or artifact is None:
            return EXIT_FAILED

        print(artifact.download_url)
        if args.no_download:
            return EXIT_OK

        output_dir = args.output_dir or settings.output_dir
        if controller.start_download(output_dir):
            await _wait_until(controller, lambda: not controller.is_saving)
        print(controller.download_message)
        if controller.last_saved_path is None:
            return EXIT_DOWNLOAD_FAILED
        return EXIT_OK
    finally:
        controller.shutdown()


def _run_operation(
    args: argparse.Namespace,
    client: ConversionServiceClient,
    settings: Settings,
) -> int:
    return asyncio.run(_drive_operation(args, client, settings, sys.stderr))


def _run_health(client: ConversionServiceClient) -> int:
    try:
        payload = client.health()
    except ServiceTransportError as exc:
        sys.stderr.write(f"[error] {exc}\n")
        return EXIT_FAILED
    print(json.dumps(payload, indent=2, sort_keys=True))
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(list(argv) if argv is not None else None)
    logging_setup.configure(logging.DEBUG if args.verbose else logging.WARNING)

    settings = load_settings()
    api_url = normalize_api_url(args.api_url) if args.api_url else settings.api_url
    client = ConversionServiceClient(api_url, timeout=settings.request_timeout_s)
    if args.command == "health":
        return _run_health(client)
    return _run_operation(args, client, settings)
