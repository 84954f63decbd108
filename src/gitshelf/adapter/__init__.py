"""Presentation adapter consumed by the UI layer."""

from .presentation import PresentationAdapter, Response, SUCCESS_CODE, FAILURE_CODE

__all__ = [
    "PresentationAdapter",
    "Response",
    "SUCCESS_CODE",
    "FAILURE_CODE"
]
