"""Validation collaborator — reviews a transcript after a fixed delay."""

import asyncio
from typing import Sequence

from sleigh_kernel.models.compliance import ChatMessage

VALIDATION_COMPLETE = "Validation complete. The compliance case has been reviewed and approved."
VALIDATION_FAILED = "Validation failed. Please retry."


class ValidationError(RuntimeError):
    """Raised when a transcript could not be validated."""
    pass


class LocalValidator:
    """
    Stand-in reviewer: waits `delay_seconds`, then approves.
    There is no caller-side timeout.
    """

    def __init__(self, delay_seconds: float = 3.0):
        self.delay_seconds = delay_seconds

    async def validate(self, transcript: Sequence[ChatMessage]) -> str:
        await asyncio.sleep(self.delay_seconds)
        return VALIDATION_COMPLETE
