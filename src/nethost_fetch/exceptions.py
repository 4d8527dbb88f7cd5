"""
Custom exceptions for nethost-fetch.

Every stage of the resolution pipeline fails fast with one of the exceptions
below. Each class carries a ``stage`` label so the build can report whether
endpoint discovery, catalog parsing, download, or extraction failed.
"""

from typing import Iterable, Optional


class NethostFetchError(Exception):
    """
    Base exception for all nethost-fetch errors.

    All custom exceptions in nethost-fetch inherit from this class
    to allow for easy catching of all resolver-specific errors.
    """

    stage = "resolution"

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration and Platform Errors
# =============================================================================


class ConfigurationError(NethostFetchError):
    """
    Exception raised when configuration is invalid or missing.

    This includes:
    - Missing output directory
    - Invalid configuration values
    - Configuration file parsing errors
    """

    stage = "configuration"


class UnsupportedPlatformError(NethostFetchError):
    """
    Exception raised when no target identifier exists for a platform triple.

    Attributes:
        os: The operating system of the rejected triple.
        arch: The CPU architecture of the rejected triple.
        env: The ABI/environment of the rejected triple.
    """

    stage = "platform mapping"

    def __init__(
        self,
        message: str,
        os: Optional[str] = None,
        arch: Optional[str] = None,
        env: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.os = os
        self.arch = arch
        self.env = env


# =============================================================================
# Registry Errors
# =============================================================================


class RegistryError(NethostFetchError):
    """
    Base exception for registry metadata errors.

    Attributes:
        url: The registry URL that was being queried.
    """

    stage = "registry query"

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url


class RegistryUnreachableError(RegistryError):
    """
    Exception raised when a registry document cannot be retrieved.

    This includes connection failures, DNS errors, TLS errors and
    non-success HTTP status codes.

    Attributes:
        status_code: The HTTP status code, when the server answered.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, url, details)
        self.status_code = status_code


class InvalidRegistryResponseError(RegistryError):
    """Exception raised when a registry response is not the expected JSON document."""

    stage = "catalog parsing"


class RegistryEndpointNotFoundError(RegistryError):
    """
    Exception raised when the service index lacks the registration resource.

    Attributes:
        resource_type: The resource type tag that was searched for.
    """

    stage = "endpoint discovery"

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        resource_type: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, url, details)
        self.resource_type = resource_type


class UnsupportedCatalogShapeError(RegistryError):
    """
    Exception raised when a catalog document carries an unknown type discriminator.

    Attributes:
        types: The discriminator values found in the document.
    """

    stage = "catalog parsing"

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        types: Optional[Iterable[str]] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, url, details)
        self.types = list(types) if types is not None else []


# =============================================================================
# Version Errors
# =============================================================================


class VersionError(NethostFetchError):
    """
    Base exception for version parsing and selection failures.

    Attributes:
        value: The offending version string, if any.
    """

    stage = "version selection"

    def __init__(
        self,
        message: str,
        value: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.value = value


class InvalidVersionFormatError(VersionError):
    """Exception raised when a registry version string is not a valid semantic version."""

    pass


class NoListedVersionFoundError(VersionError):
    """Exception raised when the catalog contains no listed release."""

    pass


# =============================================================================
# Download and Archive Errors
# =============================================================================


class DownloadFailedError(NethostFetchError):
    """
    Exception raised when the package archive cannot be downloaded.

    Attributes:
        url: The content URL that was being downloaded.
        status_code: The HTTP status code, when the server answered.
    """

    stage = "download"

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code


class ExtractionFailedError(NethostFetchError):
    """
    Exception raised when the package archive cannot be opened or copied out.

    Attributes:
        member: The archive member being extracted, if any.
    """

    stage = "extraction"

    def __init__(
        self,
        message: str,
        member: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.member = member


# =============================================================================
# File System Errors
# =============================================================================


class FileSystemError(NethostFetchError):
    """
    Exception raised for file system-related errors.

    This includes:
    - Permission denied errors
    - Disk full errors
    - Directory creation failures
    """

    stage = "filesystem"

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        """
        Initialize the file system exception.

        Args:
            message: The primary error message.
            path: The file path that caused the error.
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.path = path
