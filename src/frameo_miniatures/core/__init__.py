"""Core utilities and shared components for frameo-miniatures."""

from .image_utils import (
    apply_orientation,
    calculate_fit_size,
    fit_image,
    get_output_filename,
    get_output_relative_path,
    normalize_filename,
)
from .logging_config import get_logger, setup_logger
from .exceptions import (
    FrameoMiniaturesError,
    ConfigurationError,
    ImageProcessingError,
    MetadataError,
    PruneError,
)
from .models import (
    FileDescriptor,
    ProcessingResult,
    ProcessingStatus,
    RunConfig,
    RunSummary,
    TransformConfig,
    parse_resolution,
)
from .ignore import IgnoreMatcher
from .discovery import LocalFileDiscoveryService, walk_files

__all__ = [
    "RunConfig",
    "TransformConfig",
    "FileDescriptor",
    "ProcessingResult",
    "ProcessingStatus",
    "RunSummary",
    "parse_resolution",
    "apply_orientation",
    "calculate_fit_size",
    "fit_image",
    "get_output_filename",
    "get_output_relative_path",
    "normalize_filename",
    "setup_logger",
    "get_logger",
    "FrameoMiniaturesError",
    "ConfigurationError",
    "ImageProcessingError",
    "MetadataError",
    "PruneError",
    "IgnoreMatcher",
    "LocalFileDiscoveryService",
    "walk_files",
]
