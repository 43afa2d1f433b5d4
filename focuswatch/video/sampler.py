"""Fixed-cadence frame sampler."""

import asyncio
import logging
from typing import Callable, Optional, Set

from .source import FrameEncodingError, VideoSource, encode_jpeg

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_INTERVAL = 0.7  # seconds


class FrameSampler:
    """Captures, encodes and forwards one frame per period.

    Each tick runs independently of the previous one: a slow capture or send
    never delays the next sample.
    """

    def __init__(self,
                 source: VideoSource,
                 frame_callback: Callable[[bytes], object],
                 interval_seconds: float = DEFAULT_SAMPLE_INTERVAL,
                 jpeg_quality: int = 80,
                 open_retry_seconds: float = 2.0,
                 device_error_callback: Optional[Callable[[str], None]] = None):
        """Initialize frame sampler.

        Args:
            source: Live video source to sample
            frame_callback: Receives each encoded JPEG payload
            interval_seconds: Sampling period
            jpeg_quality: JPEG quality (0-100)
            open_retry_seconds: Delay between attempts to open an unavailable source
            device_error_callback: Told once when the source is unavailable
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.source = source
        self.frame_callback = frame_callback
        self.interval_seconds = interval_seconds
        self.jpeg_quality = jpeg_quality
        self.open_retry_seconds = open_retry_seconds
        self.device_error_callback = device_error_callback

        self.is_armed = False
        self.frames_sampled = 0
        self.frames_skipped = 0
        self._in_flight: Set[asyncio.Task] = set()
        self._opening: Optional[asyncio.Future] = None

    async def run(self) -> None:
        """Wait for the source, then sample until cancelled."""
        try:
            await self._wait_until_ready()
            self.is_armed = True
            logger.info(f"Frame sampler armed: every {self.interval_seconds:.3f}s from {self.source.describe()}")

            loop = asyncio.get_running_loop()
            next_due = loop.time()
            while True:
                task = loop.create_task(self._sample_once())
                self._in_flight.add(task)
                task.add_done_callback(self._in_flight.discard)

                next_due += self.interval_seconds
                await asyncio.sleep(max(0.0, next_due - loop.time()))
        finally:
            self.is_armed = False
            for task in list(self._in_flight):
                task.cancel()
            if self._opening is not None and not self._opening.done():
                # The open() thread cannot be cancelled; the source must not
                # be released until it has returned
                await asyncio.wait({self._opening})
            logger.info(f"Frame sampler stopped: {self.frames_sampled} sampled, "
                        f"{self.frames_skipped} skipped")

    async def _wait_until_ready(self) -> None:
        reported = False
        while not self.source.is_ready():
            self._opening = asyncio.get_running_loop().run_in_executor(None, self.source.open)
            opened = await asyncio.shield(self._opening)
            if opened and self.source.is_ready():
                break
            if not reported:
                reported = True
                message = f"Error accessing video source ({self.source.describe()})"
                logger.warning(message)
                if self.device_error_callback:
                    self.device_error_callback(message)
            await asyncio.sleep(self.open_retry_seconds)

    async def _sample_once(self) -> None:
        payload = await asyncio.to_thread(self._capture_and_encode)
        if payload is None:
            self.frames_skipped += 1
            return
        self.frames_sampled += 1
        self.frame_callback(payload)

    def _capture_and_encode(self) -> Optional[bytes]:
        frame = self.source.read()
        if frame is None:
            return None
        try:
            return encode_jpeg(frame, self.jpeg_quality)
        except FrameEncodingError as e:
            logger.warning(f"Skipping frame: {e}")
            return None
