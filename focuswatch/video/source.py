"""Live video frame sources."""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class FrameEncodingError(RuntimeError):
    """Raised when a frame cannot be encoded as a still image."""


class VideoSource(ABC):
    """Abstract base class for live frame sources."""

    @abstractmethod
    def open(self) -> bool:
        """Acquire the underlying device.

        Returns:
            True if the source is ready to produce frames, False otherwise
        """
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """Whether the source can currently produce real frames."""
        pass

    @abstractmethod
    def read(self) -> Optional[np.ndarray]:
        """Return the current frame as a BGR image, or None if unavailable."""
        pass

    @abstractmethod
    def release(self) -> None:
        """Release the underlying device."""
        pass

    def describe(self) -> str:
        return type(self).__name__


class CameraSource(VideoSource):
    """OpenCV-backed webcam (or video file) source."""

    def __init__(self,
                 device: Union[int, str] = 0,
                 width: Optional[int] = None,
                 height: Optional[int] = None):
        """Initialize camera source.

        Args:
            device: Camera index or path/URL of a video stream
            width: Requested capture width in pixels
            height: Requested capture height in pixels
        """
        self.device = device
        self.width = width
        self.height = height
        self.capture: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()  # VideoCapture is not safe for concurrent reads
        self._has_frame = False

    def open(self) -> bool:
        with self._lock:
            if self.capture is not None and self.capture.isOpened():
                return True

            logger.info(f"Opening video source: {self.device}")
            capture = cv2.VideoCapture(self.device)
            if not capture.isOpened():
                capture.release()
                logger.error(f"Unable to open video source: {self.device}")
                return False

            if self.width:
                capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            if self.height:
                capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

            # Cameras often need a first grab before delivering real frames
            self._has_frame = capture.grab()
            self.capture = capture
            logger.info(f"Video source opened: {self.device} (first frame: {self._has_frame})")
            return True

    def is_ready(self) -> bool:
        return self.capture is not None and self.capture.isOpened() and self._has_frame

    def read(self) -> Optional[np.ndarray]:
        with self._lock:
            if self.capture is None:
                return None
            ok, frame = self.capture.read()
            if not ok or frame is None or frame.size == 0:
                logger.debug("Video source returned no frame")
                return None
            self._has_frame = True
            return frame

    def release(self) -> None:
        with self._lock:
            if self.capture is not None:
                self.capture.release()
                self.capture = None
                self._has_frame = False
                logger.info(f"Video source released: {self.device}")

    def describe(self) -> str:
        return f"camera {self.device}"


def encode_jpeg(frame: np.ndarray, quality: int = 80) -> bytes:
    """Encode a BGR frame as JPEG bytes."""
    if frame is None or frame.size == 0:
        raise FrameEncodingError("Cannot encode an empty frame")
    ok, encoded = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise FrameEncodingError(f"JPEG encoding failed for frame of shape {frame.shape}")
    return encoded.tobytes()
