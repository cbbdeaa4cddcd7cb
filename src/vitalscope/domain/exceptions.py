"""
domain.exceptions - Custom exception hierarchy for VitalScope.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed.
"""


class DomainError(Exception):
    """Base exception for all domain-level errors."""


class ConfigurationError(DomainError):
    """Raised when the analysis service is misconfigured (e.g. missing API key)."""


class AnalysisServiceError(DomainError):
    """Raised when the analysis service call fails (network, bad response, timeout)."""


class ProfileNotConfiguredError(DomainError):
    """Raised when a scan is attempted before the profile is complete."""


class InvalidProfileError(DomainError):
    """Raised when a profile does not have the expected structural shape."""


class ProfileIncompleteError(DomainError):
    """Raised when an onboarding form is submitted with missing fields."""


class ConsentRequiredError(DomainError):
    """Raised when an onboarding form is submitted without consent."""


class NoImagesSelectedError(DomainError):
    """Raised when a scan is started with an empty selection."""


class ScanInProgressError(DomainError):
    """Raised when a scan is started while another one is analyzing."""


class InvalidScanTransitionError(DomainError):
    """Raised when a scan state transition is not allowed from the current state."""


class ImageDecodeError(DomainError):
    """Raised when an image source cannot be read or is not an image."""


class StorageError(DomainError):
    """Raised when a document store operation fails."""


class StorageQuotaExceededError(StorageError):
    """Raised when a document write would exceed the storage quota."""
