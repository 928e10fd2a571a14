"""Service implementations for the frameo-miniatures pipeline."""

import os
import tempfile
import time
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from PIL import Image

from .error_handling import BatchOperationContextManager, with_error_handling
from .exceptions import ImageProcessingError, MetadataError, PruneError
from .exif_utils import (
    ExifTagSet,
    curate_exif,
    embed_exif,
    extract_tag_set,
    get_capture_time,
    get_orientation,
    load_exif,
)
from .image_utils import (
    apply_orientation,
    decode_image,
    encode_image,
    fit_image,
    get_output_filename,
)
from .models import (
    FileDescriptor,
    ProcessingResult,
    ProcessingStatus,
    RunSummary,
    TransformConfig,
)
from .observability import LogContext
from .protocols import (
    BatchProcessor,
    FileDiscoveryService,
    LoggerProtocol,
    TransformService,
)
from .pruner import PrunerService


def _read_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


# os.umask can only be read by setting it, which is not thread-safe
UMASK = _read_umask()


@with_error_handling
def write_file_atomic(dest_path: str, data: bytes) -> None:
    """
    Write bytes so that readers never see a partial file.

    The data goes to a hidden temporary file next to the destination which
    is then renamed over it. The file gets the same permissions a plain
    open() would give it (0644 under the usual umask).
    """
    dest_dir = os.path.dirname(dest_path) or "."
    fd, tmp_path = tempfile.mkstemp(dir=dest_dir, prefix=".", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        # mkstemp creates the file 0600
        os.chmod(tmp_path, 0o666 & ~UMASK)
        os.replace(tmp_path, dest_path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


class ImageTransformService(TransformService):
    """Decodes, orients, resizes and re-encodes a single photo."""

    def __init__(self, config: TransformConfig, logger: LoggerProtocol):
        self._config = config
        self._logger = logger

    @property
    def config(self) -> TransformConfig:
        return self._config

    def destination_path(self, src_path: str, dest_dir: str) -> str:
        filename = get_output_filename(os.path.basename(src_path), self._config.output_format)
        return os.path.join(dest_dir, filename)

    def process(self, src_path: str, dest_dir: str) -> ProcessingResult:
        """
        Transform one source file into dest_dir.

        Failures are logged and reported in the result; nothing is raised.
        """
        start_time = time.time()
        log_context = LogContext(
            operation="process_image", component="image_transform_service"
        ).with_metadata(src=src_path)
        result = ProcessingResult(source_path=src_path)

        try:
            result.dest_path, result.status = self._transform(
                src_path, dest_dir, log_context
            )
        except ImageProcessingError as e:
            result.status = ProcessingStatus.FAILED
            result.error = str(e)
            self._logger.error(
                "Failed to process file", log_context.with_metadata(error=str(e))
            )
        finally:
            result.processing_time = time.time() - start_time

        return result

    def _transform(
        self, src_path: str, dest_dir: str, log_context: LogContext
    ) -> Tuple[str, ProcessingStatus]:
        config = self._config

        img = decode_image(src_path)
        self._logger.debug(
            "Decoded image",
            log_context.with_operation("decode"),
            size=f"{img.width}x{img.height}",
        )

        exif_dict, tags = self._read_metadata(img, log_context)
        capture_time = get_capture_time(tags)

        img = apply_orientation(img, get_orientation(tags))
        img = fit_image(img, config.frame_long, config.frame_short)

        dest_path = self.destination_path(src_path, dest_dir)

        if config.dry_run:
            self._logger.info(
                "[DRY RUN] Would write file",
                log_context,
                dest=dest_path,
                size=f"{img.width}x{img.height}",
            )
            return dest_path, ProcessingStatus.DRY_RUN

        if config.skip_existing and os.path.exists(dest_path):
            self._logger.debug("Skipping existing file", log_context, dest=dest_path)
            return dest_path, ProcessingStatus.SKIPPED

        try:
            os.makedirs(dest_dir, exist_ok=True)
        except OSError as e:
            raise ImageProcessingError(f"Failed to create dest dir {dest_dir}: {e}") from e

        data = encode_image(img, config.output_format, config.quality)
        if exif_dict:
            data = self._embed_metadata(data, exif_dict, log_context)

        write_file_atomic(dest_path, data)
        self._set_mtime(dest_path, src_path, capture_time, log_context)

        self._logger.debug(
            "Wrote file",
            log_context.with_operation("write"),
            dest=dest_path,
            bytes=len(data),
        )
        return dest_path, ProcessingStatus.WRITTEN

    def _read_metadata(
        self, img: Image.Image, log_context: LogContext
    ) -> Tuple[Optional[Dict[str, Any]], ExifTagSet]:
        """Parse EXIF; malformed metadata is treated as absent."""
        try:
            exif_dict = load_exif(img.info.get("exif"))
        except MetadataError as e:
            self._logger.warning(
                "Unreadable EXIF, continuing without metadata",
                log_context.with_operation("read_exif"),
                error=str(e),
            )
            return None, {}
        return exif_dict, extract_tag_set(exif_dict)

    def _embed_metadata(
        self, data: bytes, exif_dict: Dict[str, Any], log_context: LogContext
    ) -> bytes:
        """Embed curated EXIF; on failure the encoded bytes are returned unchanged."""
        try:
            exif_bytes = curate_exif(exif_dict)
            if exif_bytes is None:
                return data
            return embed_exif(data, exif_bytes)
        except MetadataError as e:
            self._logger.warning(
                "Failed to embed EXIF, writing without metadata",
                log_context.with_operation("embed_exif"),
                error=str(e),
            )
            return data

    def _set_mtime(
        self,
        dest_path: str,
        src_path: str,
        capture_time: Optional[datetime],
        log_context: LogContext,
    ) -> None:
        """Set mtime to the capture time, falling back to the source file's mtime."""
        try:
            if capture_time is not None:
                mtime = capture_time.timestamp()
            else:
                mtime = os.stat(src_path).st_mtime
            os.utime(dest_path, (time.time(), mtime))
        except (OSError, OverflowError, ValueError) as e:
            self._logger.warning(
                "Failed to set file time",
                log_context.with_operation("set_mtime"),
                dest=dest_path,
                error=str(e),
            )


class ProcessingOrchestrator:
    """Main orchestrator: discovery, worker pool, then optional pruning."""

    def __init__(
        self,
        file_discovery: FileDiscoveryService,
        transform_service: TransformService,
        batch_processor: BatchProcessor,
        output_dir: str,
        logger: LoggerProtocol,
        pruner: Optional[PrunerService] = None,
    ):
        self._file_discovery = file_discovery
        self._transform_service = transform_service
        self._batch_processor = batch_processor
        self._output_dir = output_dir
        self._logger = logger
        self._pruner = pruner

    def dest_dir_for(self, descriptor: FileDescriptor) -> str:
        return os.path.join(self._output_dir, os.path.dirname(descriptor.relative_path))

    def process_descriptor(self, descriptor: FileDescriptor) -> ProcessingResult:
        return self._transform_service.process(
            descriptor.absolute_path, self.dest_dir_for(descriptor)
        )

    def process_all(self) -> RunSummary:
        """Process every discovered file, then prune if configured."""
        start_time = time.time()
        summary = RunSummary()

        with BatchOperationContextManager("Image processing") as batch:
            results = self._batch_processor.process_files(
                self._file_discovery.discover_files(), self.process_descriptor
            )

            for result in results:
                if not result.success:
                    summary.error_count += 1
                    batch.add_error(result.error or "Unknown error", result.source_path)
                elif result.status == ProcessingStatus.SKIPPED:
                    summary.skipped_count += 1
                else:
                    summary.processed_count += 1

        summary.total_items = len(results)

        # Workers have all finished; pruning walks the trees on its own
        if self._pruner is not None:
            summary.removed_count = self.run_prune()

        summary.processing_time = time.time() - start_time
        log_final_statistics(summary, self._logger)
        return summary

    def run_prune(self) -> int:
        """Run the pruner; a failed output walk is logged and counts as 0 removals."""
        if self._pruner is None:
            return 0
        try:
            return self._pruner.prune()
        except PruneError as e:
            self._logger.error("Pruning failed", error=str(e))
            return 0


def log_final_statistics(summary: RunSummary, logger: LoggerProtocol) -> None:
    """Log final processing statistics."""
    rate = (
        summary.total_items / summary.processing_time
        if summary.processing_time > 0
        else 0
    )
    logger.info(
        "Processing completed",
        total=summary.total_items,
        processed=summary.processed_count,
        skipped=summary.skipped_count,
        errors=summary.error_count,
        removed=summary.removed_count,
        seconds=f"{summary.processing_time:.1f}",
        rate=f"{rate:.1f}/s",
    )
