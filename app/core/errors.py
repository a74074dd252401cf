"""Typed failures raised by the ingestion pipeline.

Only hard failures are raised. Degraded document reads and AI gateway
problems are turned into text instead and never show up here.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class carrying a user-facing message."""

    status_code = 400

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_payload(self) -> dict:
        payload = {"error": self.message}
        if self.detail:
            payload["message"] = self.detail
        return payload


class UploadRejected(PipelineError):
    """The uploaded file failed extension or size validation."""


class ContextError(PipelineError):
    """An image or video attachment could not be turned into model input."""
