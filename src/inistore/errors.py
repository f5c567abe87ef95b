"""
Exceptions raised by inistore.

Only I/O can fail: missing keys, failed conversions and malformed INI lines
are never errors.
"""

import errno as _errno
from typing import Optional


class IniError(Exception):
    """Base class for all inistore errors"""


class IniIOError(IniError, OSError):
    """
    The underlying file or stream could not be opened, read or written.

    Keeps errno, strerror and filename of the original OSError so callers
    can still tell 'not found' from 'permission denied'.
    """

    def __init__(self, cause: BaseException, filename: Optional[str] = None):
        code = getattr(cause, 'errno', None)
        if code is None:
            code = _errno.EIO
        reason = getattr(cause, 'strerror', None) or str(cause)
        filename = filename or getattr(cause, 'filename', None)
        if filename is not None:
            OSError.__init__(self, code, reason, filename)
        else:
            OSError.__init__(self, code, reason)
        self.cause = cause


class NoFilePathError(IniError):
    """Write-back was requested but the store was never loaded from or saved to a file"""

    def __init__(self, message: str = 'No file path is known for this store'):
        super().__init__(message)
