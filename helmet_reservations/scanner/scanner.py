"""
Door scanner loop.

``Scanner.scan`` opens the camera, samples frames at the configured rate until
one decodes to a QR payload, releases the camera, then submits the payload
for check-in. The result stays on screen until ``rescan`` or ``close``.
"""
from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncContextManager, Awaitable, Callable

from .camera import Camera, CameraUnavailable, decode_qr, open_camera
from .client import CheckinClient, SubmitFailed

logger = logging.getLogger(__name__)

class ScanState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    RESULT = "result"
    CAMERA_ERROR = "camera_error"
    SUBMIT_ERROR = "submit_error"
    CLOSED = "closed"

@dataclass
class ScanReport:
    state: ScanState
    payload: str | None = None
    result: dict[str, Any] | None = None
    error: str | None = None

class Scanner:
    def __init__(
        self,
        schedule_id: str,
        client: CheckinClient,
        *,
        camera_factory: Callable[[int], AsyncContextManager[Camera]] = open_camera,
        decoder: Callable[[Any], str | None] = decode_qr,
        camera_index: int = 0,
        fps: float = 30.0,
        max_empty_reads: int = 90,
    ):
        self.schedule_id = schedule_id
        self.client = client
        self.camera_factory = camera_factory
        self.decoder = decoder
        self.camera_index = camera_index
        self.frame_interval = 1.0 / fps if fps > 0 else 0.0
        self.max_empty_reads = max_empty_reads
        self.state = ScanState.IDLE
        self._task: asyncio.Task | None = None

    async def _sample(self) -> str:
        empty = 0
        async with self.camera_factory(self.camera_index) as camera:
            while True:
                frame = await camera.read()
                if frame is None:
                    empty += 1
                    if empty >= self.max_empty_reads:
                        raise CameraUnavailable(f"Camera {self.camera_index} stopped producing frames")
                else:
                    empty = 0
                    payload = self.decoder(frame)
                    if payload:
                        return payload
                await asyncio.sleep(self.frame_interval)

    async def _owned(self, coro: Awaitable[Any]) -> asyncio.Task:
        """Run one step as a task ``close`` can cancel and return it once done."""
        task = self._task = asyncio.ensure_future(coro)
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            # our caller was cancelled, not us: take the step down with it
            task.cancel()
            await asyncio.wait({task})
            raise
        finally:
            self._task = None
        return task

    def _closed_during(self, task: asyncio.Task) -> bool:
        if task.cancelled():
            return True
        if self.state == ScanState.CLOSED:
            task.exception()  # finished just before close(); drop its outcome quietly
            return True
        return False

    async def scan(self) -> ScanReport:
        if self.state == ScanState.CLOSED:
            raise RuntimeError("Scanner is closed")
        self.state = ScanState.SCANNING

        sampling = await self._owned(self._sample())
        if self._closed_during(sampling):
            return ScanReport(ScanState.CLOSED)
        try:
            payload = sampling.result()
        except CameraUnavailable as exc:
            logger.error("Camera error: %s", exc)
            self.state = ScanState.CAMERA_ERROR
            return ScanReport(ScanState.CAMERA_ERROR, error=str(exc))

        logger.info("Decoded QR for schedule %s", self.schedule_id)
        submitting = await self._owned(self.client.submit(payload, self.schedule_id))
        if self._closed_during(submitting):
            return ScanReport(ScanState.CLOSED, payload=payload)
        try:
            result = submitting.result()
        except SubmitFailed as exc:
            logger.error("Check-in submit failed: %s", exc)
            self.state = ScanState.SUBMIT_ERROR
            return ScanReport(ScanState.SUBMIT_ERROR, payload=payload, error=str(exc))

        self.state = ScanState.RESULT
        return ScanReport(ScanState.RESULT, payload=payload, result=result)

    async def rescan(self) -> ScanReport:
        """Leave the current result or error and sample again."""
        if self.state == ScanState.CLOSED:
            raise RuntimeError("Scanner is closed")
        if self.state == ScanState.SCANNING:
            raise RuntimeError("Scan already in progress")
        self.state = ScanState.IDLE
        return await self.scan()

    def close(self) -> None:
        """Stop scanning; an in-flight sample or submit is cancelled and the camera released."""
        self.state = ScanState.CLOSED
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
