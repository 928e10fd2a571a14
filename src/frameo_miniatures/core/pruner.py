"""Removal of output files that no longer have a source."""

import os
from typing import Optional, Set, Tuple

from .exceptions import PruneError
from .image_utils import get_output_relative_path
from .protocols import FileDiscoveryService, LoggerProtocol


class PrunerService:
    """
    Keeps the output tree in sync with the input tree.

    An output file is an orphan when no non-ignored input maps onto it,
    so outputs of inputs that were newly added to the ignore rules are
    removed as well.
    """

    def __init__(
        self,
        file_discovery: FileDiscoveryService,
        output_dir: str,
        output_format: str,
        logger: LoggerProtocol,
        dry_run: bool = False,
    ):
        self._file_discovery = file_discovery
        self._output_dir = output_dir
        self._output_format = output_format
        self._logger = logger
        self._dry_run = dry_run

    def expected_outputs(self) -> Set[str]:
        """Output paths, relative to the output root, that the input tree maps onto."""
        return {
            os.path.normpath(
                get_output_relative_path(descriptor.relative_path, self._output_format)
            )
            for descriptor in self._file_discovery.discover_files()
        }

    def prune(self) -> int:
        """
        Remove orphaned files, then empty directories.

        Returns:
            Number of files removed (or, in dry-run, that would be removed)

        Raises:
            PruneError: If the output tree cannot be walked
        """
        if not os.path.isdir(self._output_dir):
            self._logger.info("Output directory does not exist, nothing to prune", path=self._output_dir)
            return 0

        expected = self.expected_outputs()
        removed, pending = self._remove_orphans(expected)
        self._remove_empty_dirs(pending)

        self._logger.info("Pruning finished", removed=removed, dry_run=self._dry_run)
        return removed

    def _remove_orphans(self, expected: Set[str]) -> Tuple[int, Set[str]]:
        def on_error(err: OSError) -> None:
            raise PruneError(f"Failed to walk {err.filename}: {err}") from err

        removed = 0
        # Paths that are gone, or would be gone in dry-run
        pending: Set[str] = set()

        for dirpath, _dirnames, filenames in os.walk(self._output_dir, onerror=on_error):
            for name in sorted(filenames):
                path = os.path.join(dirpath, name)
                rel_path = os.path.normpath(os.path.relpath(path, self._output_dir))
                if rel_path in expected:
                    continue

                if self._dry_run:
                    self._logger.info("[DRY RUN] Would prune orphaned file", file=rel_path)
                    pending.add(path)
                    removed += 1
                    continue

                self._logger.info("Pruning orphaned file", file=rel_path)
                try:
                    os.remove(path)
                except OSError as e:
                    self._logger.warning("Failed to remove file", file=path, error=str(e))
                    continue
                pending.add(path)
                removed += 1

        return removed, pending

    def _remove_empty_dirs(self, pending: Optional[Set[str]] = None) -> int:
        """Remove empty directories bottom-up, never the output root itself."""
        pending = pending if pending is not None else set()
        root = os.path.abspath(self._output_dir)
        count = 0

        for dirpath, _dirnames, _filenames in os.walk(self._output_dir, topdown=False):
            if os.path.abspath(dirpath) == root:
                continue

            try:
                entries = os.listdir(dirpath)
            except OSError as e:
                self._logger.warning("Failed to read directory", dir=dirpath, error=str(e))
                continue

            if any(os.path.join(dirpath, entry) not in pending for entry in entries):
                continue

            if self._dry_run:
                self._logger.debug("[DRY RUN] Would remove empty directory", dir=dirpath)
                pending.add(dirpath)
                count += 1
                continue

            try:
                os.rmdir(dirpath)
            except OSError as e:
                self._logger.warning("Failed to remove directory", dir=dirpath, error=str(e))
                continue
            self._logger.debug("Removed empty directory", dir=dirpath)
            count += 1

        return count
