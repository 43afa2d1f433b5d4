"""Wire message models exchanged with the classification service."""

import base64
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class FrameMessage(BaseModel):
    """Outbound `frame` message: one base64-encoded JPEG snapshot."""
    model_config = ConfigDict(frozen=True)

    frame: str

    @classmethod
    def from_jpeg(cls, payload: bytes) -> "FrameMessage":
        return cls(frame=base64.b64encode(payload).decode("ascii"))


class StatusMessage(BaseModel):
    """Inbound classification result.

    The service has been seen sending the label under either `status` or
    `focus_status`, and occasionally as a bare string.
    """
    model_config = ConfigDict(extra="ignore")

    status: str

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"status": data}
        if isinstance(data, dict) and "status" not in data and "focus_status" in data:
            return {**data, "status": data["focus_status"]}
        return data


class ErrorMessage(BaseModel):
    """Inbound frame-processing failure; the connection stays open."""
    model_config = ConfigDict(extra="ignore")

    error: str = "Unknown error"

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"error": data}
        if data is None:
            return {}
        return data
