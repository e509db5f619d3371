"""Acquisition exceptions for error handling."""


class AcquisitionError(Exception):
    """Base exception for failures before a track is persisted."""

    pass


class InvalidURLError(AcquisitionError):
    """Raised when the URL is not a well-formed http(s) URL."""

    pass


class MetadataLookupError(AcquisitionError):
    """Raised when a platform metadata lookup fails."""

    pass


class DownloadError(AcquisitionError):
    """Raised when audio could not be downloaded or located afterwards."""

    pass


class VideoUnavailableError(DownloadError):
    """Raised when the source media is deleted, private or unavailable."""

    pass


class AgeRestrictedError(DownloadError):
    """Raised when the source media requires age verification."""

    pass


class CopyrightBlockedError(DownloadError):
    """Raised when the source media is blocked due to copyright."""

    pass
