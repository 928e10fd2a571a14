"""Streaming discovery of source images on the local filesystem."""

import os
import queue
from typing import Iterator, Optional, Tuple

from .ignore import IgnoreMatcher
from .image_utils import is_valid_extension
from .models import FileDescriptor
from .protocols import FileDiscoveryService, LoggerProtocol, PathMatcher

# Enqueued once by the producer; the only end-of-stream signal consumers see
QUEUE_CLOSED = object()


def path_forms(root_name: str, relative_path: str) -> Tuple[str, ...]:
    """
    Forms a root-relative path is matched in.

    Rules may be written against the input root (``subdir/*``) or against
    its parent (``*/subdir/*``), so the path is also tried prefixed with the
    root directory's own name.
    """
    if not root_name:
        return (relative_path,)
    return (relative_path, f"{root_name}/{relative_path}")


def walk_files(
    root: str,
    matcher: Optional[PathMatcher] = None,
    logger: Optional[LoggerProtocol] = None,
    skip_dir: Optional[str] = None,
) -> Iterator[FileDescriptor]:
    """
    Lazily yield every non-ignored source image below root.

    Ignored directories are never descended into. Neither is skip_dir, so an
    output tree kept inside the input tree is not read back as input.
    Traversal errors are logged and skipped. Each call performs one fresh walk.

    Args:
        root: Input directory
        matcher: Ignore rules; None ignores nothing
        logger: Sink for traversal errors
        skip_dir: Directory never to descend into, usually the output root

    Yields:
        FileDescriptor for each accepted file, in filesystem order
    """
    matcher = matcher or IgnoreMatcher()
    root = os.path.abspath(root)
    root_name = os.path.basename(root)
    skip_path = os.path.abspath(skip_dir) if skip_dir else None

    def on_error(err: OSError) -> None:
        if logger:
            logger.error("Error walking path", path=err.filename, error=str(err))

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        rel_dir = os.path.relpath(dirpath, root)
        rel_dir = "" if rel_dir == "." else rel_dir

        # Prune in place so os.walk skips ignored subtrees
        kept = []
        for name in sorted(dirnames):
            rel_path = os.path.join(rel_dir, name)
            if skip_path and os.path.join(dirpath, name) == skip_path:
                if logger:
                    logger.debug("Skipping output directory", path=rel_path)
                continue
            if matcher.matches_any(path_forms(root_name, rel_path), is_dir=True):
                if logger:
                    logger.debug("Skipping ignored directory", path=rel_path)
                continue
            kept.append(name)
        dirnames[:] = kept

        for name in sorted(filenames):
            rel_path = os.path.join(rel_dir, name)
            if not is_valid_extension(name):
                continue
            if matcher.matches_any(path_forms(root_name, rel_path), is_dir=False):
                if logger:
                    logger.debug("Skipping ignored file", path=rel_path)
                continue

            yield FileDescriptor(
                absolute_path=os.path.join(dirpath, name), relative_path=rel_path
            )


def feed_queue(
    files: Iterator[FileDescriptor],
    work_queue: "queue.Queue[object]",
    logger: Optional[LoggerProtocol] = None,
) -> int:
    """
    Push every descriptor onto a bounded queue, then close it.

    Blocks while the queue is full. The close marker is enqueued even if
    the walk fails.

    Returns:
        Number of descriptors enqueued
    """
    count = 0
    try:
        for descriptor in files:
            work_queue.put(descriptor)
            count += 1
    finally:
        work_queue.put(QUEUE_CLOSED)
        if logger:
            logger.debug("Discovery finished", files=count)
    return count


class LocalFileDiscoveryService(FileDiscoveryService):
    """Discovers source images below a local input root."""

    def __init__(
        self,
        input_dir: str,
        matcher: Optional[PathMatcher] = None,
        logger: Optional[LoggerProtocol] = None,
        skip_dir: Optional[str] = None,
    ):
        self._input_dir = input_dir
        self._matcher = matcher
        self._logger = logger
        self._skip_dir = skip_dir

    @property
    def input_dir(self) -> str:
        return self._input_dir

    def discover_files(self) -> Iterator[FileDescriptor]:
        """Start a fresh walk; the returned iterator cannot be restarted."""
        return walk_files(
            self._input_dir, self._matcher, self._logger, skip_dir=self._skip_dir
        )
