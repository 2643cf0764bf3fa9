# squares_backend/core/errors.py
from __future__ import annotations


class SquaresError(Exception):
    """Base for every recoverable failure raised by the engine."""


class RecognitionUnavailable(SquaresError):
    """OCR backend missing, misconfigured, or crashed mid-run."""


class GridNotFound(SquaresError):
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class DetectionCancelled(SquaresError):
    """The caller abandoned the detection; results must not be applied."""


class FeedUnavailable(SquaresError):
    """Score feed unreachable or returned something we can't read."""


class PoolNotFound(SquaresError):
    def __init__(self, pool_id: str):
        super().__init__(f"pool not found: {pool_id}")
        self.pool_id = pool_id
