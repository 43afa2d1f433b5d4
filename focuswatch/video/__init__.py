"""Video capture and frame sampling module."""

from .source import VideoSource, CameraSource, FrameEncodingError, encode_jpeg
from .sampler import FrameSampler, DEFAULT_SAMPLE_INTERVAL

__all__ = [
    'VideoSource',
    'CameraSource',
    'FrameEncodingError',
    'encode_jpeg',
    'FrameSampler',
    'DEFAULT_SAMPLE_INTERVAL',
]
