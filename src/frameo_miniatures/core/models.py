"""Shared data models for frameo-miniatures."""

import os
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import ConfigurationError

SUPPORTED_FORMATS = ("webp", "jpg", "jpeg")


def parse_resolution(resolution: str) -> Tuple[int, int]:
    """
    Parse a ``<width>x<height>`` resolution string.

    Args:
        resolution: Resolution string, e.g. "1280x800"

    Returns:
        Tuple of (width, height)

    Raises:
        ConfigurationError: If the string is malformed or a dimension is not positive
    """
    parts = resolution.strip().lower().split("x")
    if len(parts) != 2:
        raise ConfigurationError(f"Invalid resolution format: {resolution}")

    try:
        width = int(parts[0])
    except ValueError:
        raise ConfigurationError(f"Invalid width: {parts[0]}")
    try:
        height = int(parts[1])
    except ValueError:
        raise ConfigurationError(f"Invalid height: {parts[1]}")

    if width <= 0 or height <= 0:
        raise ConfigurationError(f"Resolution must be positive: {resolution}")
    return width, height


class TransformConfig(BaseModel):
    """Immutable settings shared by every worker during a run."""

    model_config = ConfigDict(frozen=True)

    target_width: int = Field(gt=0)
    target_height: int = Field(gt=0)
    quality: int = Field(default=80, ge=0, le=100)
    output_format: str = "webp"
    skip_existing: bool = False
    dry_run: bool = False

    @property
    def frame_long(self) -> int:
        return max(self.target_width, self.target_height)

    @property
    def frame_short(self) -> int:
        return min(self.target_width, self.target_height)


class RunConfig(BaseModel):
    """Configuration for a processing run, as given on the command line."""

    input_dir: str = "."
    output_dir: str = "./output"
    resolution: str = "1280x800"
    output_format: str = "webp"
    quality: int = Field(default=80, ge=0, le=100)
    workers: int = Field(default=0, ge=0)
    prune: bool = False
    dry_run: bool = False
    skip_existing: bool = False
    ignore_file: Optional[str] = None
    queue_size: int = Field(default=1000, gt=0)
    debug: bool = False

    @property
    def worker_count(self) -> int:
        """Number of workers to start; 0 means one per CPU."""
        if self.workers > 0:
            return self.workers
        return os.cpu_count() or 1

    def to_transform_config(self) -> TransformConfig:
        """Build the per-run transform settings, validating the resolution."""
        if self.output_format.lower() not in SUPPORTED_FORMATS:
            raise ConfigurationError(f"Unsupported output format: {self.output_format}")

        width, height = parse_resolution(self.resolution)
        return TransformConfig(
            target_width=width,
            target_height=height,
            quality=self.quality,
            output_format=self.output_format.lower(),
            skip_existing=self.skip_existing,
            dry_run=self.dry_run,
        )


class FileDescriptor(BaseModel):
    """A discovered source image."""

    model_config = ConfigDict(frozen=True)

    absolute_path: str
    relative_path: str


class ProcessingStatus(str, Enum):
    """Outcome of transforming a single file."""

    WRITTEN = "written"
    SKIPPED = "skipped"
    DRY_RUN = "dry_run"
    FAILED = "failed"


class ProcessingResult(BaseModel):
    """Result of processing a single image."""

    source_path: str
    dest_path: str = ""
    status: ProcessingStatus = ProcessingStatus.FAILED
    error: str = ""
    processing_time: float = 0.0

    @property
    def success(self) -> bool:
        return self.status != ProcessingStatus.FAILED


class RunSummary(BaseModel):
    """Totals reported at the end of a run."""

    total_items: int = 0
    processed_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    removed_count: int = 0
    processing_time: float = 0.0
