"""Factory classes for creating configured service instances."""

from typing import Optional

from ..processors.worker_pool import ThreadPoolBatchProcessor
from .discovery import LocalFileDiscoveryService
from .ignore import IgnoreMatcher
from .models import RunConfig
from .observability import StructuredLogger
from .protocols import LoggerProtocol, PathMatcher, ProgressProtocol
from .pruner import PrunerService
from .services import ImageTransformService, ProcessingOrchestrator


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(
        name: str = "frameo-miniatures", debug: bool = False
    ) -> StructuredLogger:
        """Create a structured logger, switched to DEBUG on request."""
        return StructuredLogger(name, debug=debug)


class ProcessingPipelineFactory:
    """Factory for creating the complete processing pipeline."""

    @staticmethod
    def create_matcher(config: RunConfig, logger: LoggerProtocol) -> PathMatcher:
        return IgnoreMatcher.load(config.ignore_file, config.input_dir, logger)

    @staticmethod
    def create_pruner(
        config: RunConfig,
        logger: Optional[LoggerProtocol] = None,
        matcher: Optional[PathMatcher] = None,
    ) -> PrunerService:
        """Create a pruner with its own discovery service."""
        if logger is None:
            logger = LoggerFactory.create_logger(debug=config.debug)
        if matcher is None:
            matcher = ProcessingPipelineFactory.create_matcher(config, logger)

        return PrunerService(
            file_discovery=LocalFileDiscoveryService(
                config.input_dir, matcher, logger, skip_dir=config.output_dir
            ),
            output_dir=config.output_dir,
            output_format=config.output_format.lower(),
            logger=logger,
            dry_run=config.dry_run,
        )

    @staticmethod
    def create_pipeline(
        config: RunConfig,
        logger: Optional[LoggerProtocol] = None,
        progress: Optional[ProgressProtocol] = None,
    ) -> ProcessingOrchestrator:
        """
        Create a fully configured processing pipeline.

        Raises:
            ConfigurationError: If the resolution or format is invalid
        """
        # Validate before touching the filesystem
        transform_config = config.to_transform_config()

        if logger is None:
            logger = LoggerFactory.create_logger(debug=config.debug)

        matcher = ProcessingPipelineFactory.create_matcher(config, logger)

        pruner = None
        if config.prune:
            pruner = ProcessingPipelineFactory.create_pruner(config, logger, matcher)

        return ProcessingOrchestrator(
            file_discovery=LocalFileDiscoveryService(
                config.input_dir, matcher, logger, skip_dir=config.output_dir
            ),
            transform_service=ImageTransformService(transform_config, logger),
            batch_processor=ThreadPoolBatchProcessor(
                workers=config.worker_count,
                queue_size=config.queue_size,
                progress=progress,
                logger=logger,
            ),
            output_dir=config.output_dir,
            logger=logger,
            pruner=pruner,
        )
