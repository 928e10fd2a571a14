"""Protocol definitions for dependency injection and testability."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Iterator, List, Optional, Protocol

from .models import FileDescriptor, ProcessingResult


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Optional[Any] = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Optional[Any] = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(
        self, message: str, context: Optional[Any] = None, **kwargs: Any
    ) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Optional[Any] = None, **kwargs: Any) -> None:
        """Log error message."""
        ...


class ProgressProtocol(Protocol):
    """Protocol for progress notifications, one per completed file."""

    def advance(self, count: int = 1) -> None:
        """Record completed work."""
        ...

    def close(self) -> None:
        """Finish reporting."""
        ...


class PathMatcher(Protocol):
    """Protocol for ignore-rule matching."""

    def matches(self, relative_path: str, is_dir: bool = False) -> bool:
        """Return True if the path is ignored."""
        ...

    def matches_any(self, paths: Iterable[str], is_dir: bool = False) -> bool:
        """Return True if any of the path forms is ignored."""
        ...


class FileDiscoveryService(ABC):
    """Abstract service for discovering files to process."""

    @abstractmethod
    def discover_files(self) -> Iterator[FileDescriptor]:
        """Yield files to process from a fresh walk."""
        ...


class TransformService(ABC):
    """Abstract service for transforming a single image."""

    @abstractmethod
    def process(self, src_path: str, dest_dir: str) -> ProcessingResult:
        """Transform one source file into dest_dir."""
        ...


class BatchProcessor(ABC):
    """Abstract processor draining a stream of discovered files."""

    @abstractmethod
    def process_files(
        self,
        files: Iterator[FileDescriptor],
        handler: Callable[[FileDescriptor], ProcessingResult],
    ) -> List[ProcessingResult]:
        """Run handler once per file and return every result."""
        ...
