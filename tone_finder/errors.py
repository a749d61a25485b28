from __future__ import annotations


class CaptureError(RuntimeError):
    pass


class InvalidOperationError(CaptureError):
    """Read attempted on a stream that is not running."""


class BadValueError(CaptureError):
    """Read called with a frame count the stream cannot honour."""


class PermissionDeniedError(CaptureError):
    pass


class DeviceError(CaptureError):
    pass
