"""Connection options for the classification service transport."""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_BACKEND_URL = "http://127.0.0.1:5000"
SUPPORTED_TRANSPORTS = ("polling", "websocket")


class TransportOptions(BaseModel):
    """Immutable transport configuration.

    Use the `with_*` helpers to derive a variant; each returns a validated
    copy instead of mutating the instance.
    """
    model_config = ConfigDict(frozen=True)

    endpoint: str = DEFAULT_BACKEND_URL
    transports: List[str] = Field(default_factory=lambda: ["websocket"])
    reconnection: bool = True
    max_reconnect_attempts: int = Field(default=5, ge=0)
    reconnect_delay: float = Field(default=1.0, ge=0)  # seconds
    connect_timeout: float = Field(default=5.0, gt=0)  # seconds
    headers: Dict[str, str] = Field(default_factory=dict)
    namespace: str = "/"
    socketio_path: str = "socket.io"

    @field_validator("endpoint")
    @classmethod
    def _check_endpoint(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("endpoint must not be empty")
        return value

    @field_validator("transports")
    @classmethod
    def _check_transports(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("at least one transport is required")
        unknown = [t for t in value if t not in SUPPORTED_TRANSPORTS]
        if unknown:
            raise ValueError(f"unsupported transports: {unknown}")
        return list(value)

    def _with(self, **changes: Any) -> "TransportOptions":
        return type(self).model_validate({**self.model_dump(), **changes})

    def with_endpoint(self, endpoint: str) -> "TransportOptions":
        return self._with(endpoint=endpoint)

    def with_transports(self, *transports: str) -> "TransportOptions":
        return self._with(transports=list(transports))

    def with_reconnection(self,
                          enabled: bool = True,
                          max_attempts: int = None,
                          delay: float = None) -> "TransportOptions":
        changes: Dict[str, Any] = {"reconnection": enabled}
        if max_attempts is not None:
            changes["max_reconnect_attempts"] = max_attempts
        if delay is not None:
            changes["reconnect_delay"] = delay
        return self._with(**changes)

    def with_headers(self, **headers: str) -> "TransportOptions":
        return self._with(headers={**self.headers, **headers})

    def with_connect_timeout(self, seconds: float) -> "TransportOptions":
        return self._with(connect_timeout=seconds)
