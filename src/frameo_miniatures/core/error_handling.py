# src/frameo_miniatures/core/error_handling.py

import functools
import logging
from typing import Any, Callable, Dict, List, TypeVar

from PIL import Image, UnidentifiedImageError

from .exceptions import FrameoMiniaturesError, ImageProcessingError

F = TypeVar("F", bound=Callable[..., Any])


def with_error_handling(func: F) -> F:
    """
    A decorator to wrap image operations with standardized error handling.

    Pillow decode/encode failures and filesystem errors are logged and raised
    as ImageProcessingError; pipeline errors pass through unchanged.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__ + "." + func.__name__)
        try:
            return func(*args, **kwargs)
        except FrameoMiniaturesError:
            raise
        except UnidentifiedImageError as e:
            logger.debug(f"Error in '{func.__name__}': {e}")
            raise ImageProcessingError(
                f"Failed to identify image in {func.__name__}: {e}"
            ) from e
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
            # SyntaxError is raised by Pillow for some malformed files
            logger.debug(f"Error in '{func.__name__}': {e}")
            raise ImageProcessingError(
                f"Image operation failed in {func.__name__}: {e}"
            ) from e

    return wrapper  # type: ignore[return-value]


class BatchOperationContextManager:
    """
    Context manager for batch operations to collect and summarize errors.

    Safe to call add_error from several worker threads; list.append is atomic.
    """

    def __init__(self, operation_name: str = "Batch Operation"):
        self.operation_name = operation_name
        self.errors: List[Dict[str, str]] = []
        self.logger = logging.getLogger(
            self.__class__.__module__ + "." + self.__class__.__name__
        )

    def __enter__(self):
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                self.logger.error(
                    f"  Error {i + 1}/{len(self.errors)} for item "
                    f"'{error_detail['item']}': {error_detail['error']}"
                )
        elif exc_type:
            self.logger.error(
                f"{self.operation_name} failed due to an unhandled exception: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")

        # Never suppress exceptions raised inside the block
        return False

    def add_error(self, error_message: str, item_identifier: str = "Unknown item"):
        """
        Report an error for a specific item.

        Args:
            error_message: The error message or exception string.
            item_identifier: A string identifying the item that failed (e.g. a path).
        """
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self.logger.debug(
            f"Error added for item '{item_identifier}' in {self.operation_name}: {error_message}"
        )
