"""Custom exceptions for frameo-miniatures."""


class FrameoMiniaturesError(Exception):
    """Base exception for all frameo-miniatures errors."""


class ConfigurationError(FrameoMiniaturesError):
    """Error raised for invalid configuration options."""


class ImageProcessingError(FrameoMiniaturesError):
    """Error raised when processing a single image fails."""


class MetadataError(FrameoMiniaturesError):
    """Error raised when EXIF metadata cannot be read, rebuilt or embedded."""


class PruneError(FrameoMiniaturesError):
    """Error raised when the output tree cannot be walked during pruning."""
