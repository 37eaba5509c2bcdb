"""
Camera access and QR decoding for the door scanner.

The capture device is only ever held inside ``open_camera``; leaving the
``async with`` block for any reason (decode, close, cancellation, error)
releases it.
"""
from __future__ import annotations
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import cv2

logger = logging.getLogger(__name__)

class CameraUnavailable(Exception):
    """The capture device could not be opened or stopped producing frames."""

class Camera:
    """Frame source over one capture device.

    Every call into the device runs on the camera's single worker thread, so a
    release issued while a read is in flight waits for that read to finish.
    """

    def __init__(self, capture: Any, worker: ThreadPoolExecutor):
        self._capture = capture
        self._worker = worker

    async def read(self) -> Any | None:
        """Next frame, or None when the device produced nothing this tick."""
        loop = asyncio.get_running_loop()
        ok, frame = await loop.run_in_executor(self._worker, self._capture.read)
        return frame if ok else None

@asynccontextmanager
async def open_camera(index: int = 0) -> AsyncIterator[Camera]:
    loop = asyncio.get_running_loop()
    worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"camera-{index}")
    try:
        capture = await loop.run_in_executor(worker, cv2.VideoCapture, index)
        try:
            if not capture.isOpened():
                raise CameraUnavailable(f"Could not open camera {index}")
            logger.debug("Camera %s opened", index)
            yield Camera(capture, worker)
        finally:
            # queued behind any read a cancelled scan left running
            await asyncio.shield(loop.run_in_executor(worker, capture.release))
            logger.debug("Camera %s released", index)
    finally:
        worker.shutdown(wait=False)

_detector: Any = None

def decode_qr(frame: Any) -> str | None:
    global _detector
    if _detector is None:
        _detector = cv2.QRCodeDetector()
    try:
        data, _points, _ = _detector.detectAndDecode(frame)
    except cv2.error:
        logger.debug("QR detector rejected frame", exc_info=True)
        return None
    return data or None
