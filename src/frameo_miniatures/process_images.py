"""
Run entry points shared by the CLI commands.

Walks the input tree → Resizes/re-encodes every photo → Writes the output tree
→ Optionally prunes orphaned outputs.
"""

from typing import Optional

from .core.factories import LoggerFactory, ProcessingPipelineFactory
from .core.models import RunConfig, RunSummary
from .core.protocols import LoggerProtocol, ProgressProtocol


def log_configuration(config: RunConfig, logger: LoggerProtocol) -> None:
    """Log the effective run configuration."""
    logger.info(
        "Starting frameo-miniatures",
        input=config.input_dir,
        output=config.output_dir,
        resolution=config.resolution,
        format=config.output_format,
        quality=config.quality,
        workers=config.worker_count,
        prune=config.prune,
        dry_run=config.dry_run,
        skip_existing=config.skip_existing,
    )


def run_processing(
    config: RunConfig,
    logger: Optional[LoggerProtocol] = None,
    progress: Optional[ProgressProtocol] = None,
) -> RunSummary:
    """
    Process the whole input tree and optionally prune the output tree.

    Raises:
        ConfigurationError: Before any processing, if the configuration is invalid
    """
    if logger is None:
        logger = LoggerFactory.create_logger(debug=config.debug)

    try:
        pipeline = ProcessingPipelineFactory.create_pipeline(config, logger, progress)
        log_configuration(config, logger)
        return pipeline.process_all()
    finally:
        if progress is not None:
            progress.close()


def run_prune(config: RunConfig, logger: Optional[LoggerProtocol] = None) -> int:
    """
    Prune the output tree without processing anything.

    Raises:
        PruneError: If the output tree cannot be walked
    """
    if logger is None:
        logger = LoggerFactory.create_logger(debug=config.debug)

    pruner = ProcessingPipelineFactory.create_pruner(config, logger)
    return pruner.prune()
