"""
Harvester exceptions.
"""

from __future__ import annotations


class HarvesterError(RuntimeError):
    """Base exception for catalog harvesting failures."""


class RangeQueryError(HarvesterError):
    """Raised when one range query cannot be completed."""


class HarvestStartupError(HarvesterError):
    """Raised when the preliminary estimate query exhausts its attempts."""


class RateLimiterClosedError(HarvesterError):
    """Raised when a token is requested from a stopped rate limiter."""


class QueueClosedError(HarvesterError):
    """Raised when tasks are pushed into a closed task queue."""


class QueueProtocolError(HarvesterError):
    """Raised when the outstanding-work accounting is violated."""


class CollectorClosedError(HarvesterError):
    """Raised when an item is sent to a closed collector."""


class CollectorStateError(HarvesterError):
    """Raised when a collector is read before its drain loop finished."""
