"""Error types for QRcation.

None of these are fatal. They are logged or turned into a status line.
"""

from __future__ import annotations


class QRcationError(Exception):
    """Base class for QRcation errors."""


class LocationError(QRcationError):
    """Location could not be obtained from the provider."""


class PermissionDeniedError(LocationError):
    """Location access was refused or restricted."""


class ServiceDisabledError(LocationError):
    """Location services are switched off at the platform level."""


class StreamError(LocationError):
    """Transient failure reported by a location stream."""


class EncodeRejectedError(QRcationError):
    """The payload could not be encoded as a QR code."""
