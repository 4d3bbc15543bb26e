"""
This module contains the exceptions raised by the formulary package.
"""

from typing import Optional


class FormularyException(Exception):
    """
    Base exception for all formulary errors.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DescriptorError(FormularyException):
    """
    Raised when a descriptor document cannot be parsed or fails validation.
    """


class FetchError(FormularyException):
    """
    Raised when an archive cannot be retrieved: network failure, timeout or a non-2xx response.
    """

    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ChecksumMismatchError(FormularyException):
    """
    Raised when the SHA-256 digest of fetched content differs from the expected checksum.
    Installation must never proceed after this error.
    """

    def __init__(self, expected: str, actual: str):
        super().__init__(f"Checksum mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class InstallError(FormularyException):
    """
    Raised when the archive is unusable or a destination file cannot be written.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
