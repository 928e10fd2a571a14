"""Testing utilities and fakes for frameo-miniatures."""

from .fakes import (
    FakeLogger,
    FakeProgress,
    create_exif_bytes,
    create_test_image,
    setup_test_photo_tree,
    write_files,
    write_test_image,
)

__all__ = [
    "FakeLogger",
    "FakeProgress",
    "create_exif_bytes",
    "create_test_image",
    "setup_test_photo_tree",
    "write_files",
    "write_test_image",
]
