"""
Terminal front-end for the door scanner.

    python -m helmet_reservations.scanner --schedule-id <id>
"""
from __future__ import annotations
import argparse
import asyncio
import logging

from ..core.config import ScannerSettings
from ..core.logging_config import setup_logging
from .client import CheckinClient
from .scanner import ScanReport, ScanState, Scanner

logger = logging.getLogger(__name__)

def render(report: ScanReport) -> str:
    if report.state == ScanState.CAMERA_ERROR:
        return f"[camera] {report.error}"
    if report.state == ScanState.CLOSED:
        return "[closed]"
    if report.state == ScanState.SUBMIT_ERROR:
        return f"[error] {report.error}"
    result = report.result or {}
    mark = "OK" if result.get("valid") else "!!"
    lines = [f"[{mark}] {result.get('message', '')}"]
    if result.get("userName"):
        lines.append(f"     {result['userName']}")
    if result.get("userEmail"):
        lines.append(f"     {result['userEmail']}")
    return "\n".join(lines)

async def run(args: argparse.Namespace, settings: ScannerSettings) -> None:
    client = CheckinClient(args.api_url or settings.api_url, timeout=settings.request_timeout_seconds)
    scanner = Scanner(
        args.schedule_id,
        client,
        camera_index=args.camera if args.camera is not None else settings.camera_index,
        fps=settings.fps,
        max_empty_reads=settings.max_empty_reads,
    )
    try:
        report = await scanner.scan()
        while True:
            print(render(report))
            answer = await asyncio.to_thread(input, "Enter to rescan, q to quit: ")
            if answer.strip().lower() == "q":
                break
            report = await scanner.rescan()
    finally:
        scanner.close()

def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Scan helmet QR codes for one class")
    parser.add_argument("--schedule-id", required=True)
    parser.add_argument("--api-url", default=None)
    parser.add_argument("--camera", type=int, default=None)
    args = parser.parse_args(argv)

    settings = ScannerSettings()
    setup_logging(settings.log_level)
    try:
        asyncio.run(run(args, settings))
    except KeyboardInterrupt:
        logger.info("Scanner stopped")

if __name__ == "__main__":
    main()
