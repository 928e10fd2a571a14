"""Tests for image_utils.py utility functions."""

import io
from unittest.mock import Mock, patch

import pytest
from PIL import Image

from frameo_miniatures.core.exceptions import ImageProcessingError
from frameo_miniatures.core.image_utils import (
    apply_orientation,
    calculate_fit_size,
    decode_image,
    encode_image,
    fit_image,
    get_output_filename,
    get_output_relative_path,
    is_valid_extension,
    normalize_filename,
    output_extension,
)
from frameo_miniatures.testing.fakes import create_exif_bytes, write_test_image

BLUE = (0, 0, 255)


def marked_image(width=40, height=20):
    """Red image whose top-left 10x5 block is pure blue."""
    img = Image.new("RGB", (width, height), color=(255, 0, 0))
    img.paste(Image.new("RGB", (10, 5), color=BLUE), (0, 0))
    return img


class TestFilenames:
    """Tests for extension checks and filename normalization."""

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("photo.jpg", True),
            ("photo.JPG", True),
            ("photo.jpeg", True),
            ("photo.JPEG", True),
            ("photo.heic", True),
            ("photo.HEIC", True),
            ("photo.png", False),
            ("notes.txt", False),
            ("jpg", False),
            ("photo.jpg.bak", False),
        ],
    )
    def test_is_valid_extension(self, path, expected):
        assert is_valid_extension(path) is expected

    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("IMG_0001.JPG", "IMG_0001"),
            ("photo:test.jpg", "photo_test"),
            ("photo<test>.jpg", "photo_test_"),
            ('a*b?c"d|e;f.heic', "a_b_c_d_e_f"),
            ("back\\slash.jpeg", "back_slash"),
            ("archive.tar.jpg", "archive.tar"),
            ("plain", "plain"),
        ],
    )
    def test_normalize_filename(self, filename, expected):
        assert normalize_filename(filename) == expected

    @pytest.mark.parametrize(
        "output_format, expected",
        [("webp", ".webp"), ("jpg", ".jpg"), ("jpeg", ".jpg"), ("JPEG", ".jpg")],
    )
    def test_output_extension(self, output_format, expected):
        assert output_extension(output_format) == expected

    def test_get_output_filename(self):
        assert get_output_filename("photo:test.jpg", "webp") == "photo_test.webp"
        assert get_output_filename("photo<test>.HEIC", "jpg") == "photo_test_.jpg"

    def test_get_output_relative_path_keeps_directories(self):
        assert (
            get_output_relative_path("2024/summer/beach.jpg", "webp")
            == "2024/summer/beach.webp"
        )

    def test_get_output_relative_path_top_level(self):
        assert get_output_relative_path("a.jpeg", "jpg") == "a.jpg"


class TestCalculateFitSize:
    """Tests for calculate_fit_size with a 1280x800 frame."""

    @pytest.mark.parametrize(
        "size, expected",
        [
            ((4000, 3000), (1067, 800)),  # landscape, height bound
            ((3000, 4000), (800, 1067)),  # portrait uses the rotated box
            ((6000, 2000), (1280, 427)),  # panorama, width bound
            ((2000, 2000), (800, 800)),  # square fits the landscape box
            ((2560, 1600), (1280, 800)),  # exact frame ratio
            ((1280, 800), (1280, 800)),
            ((640, 480), (640, 480)),  # never enlarged
            ((100000, 10), (1280, 1)),  # never collapses to zero
        ],
    )
    def test_fit_sizes(self, size, expected):
        assert calculate_fit_size(size[0], size[1], 1280, 800) == expected

    @pytest.mark.parametrize("size", [(4000, 3000), (3000, 4000), (5000, 1234)])
    def test_fit_stays_within_box(self, size):
        width, height = calculate_fit_size(size[0], size[1], 1280, 800)
        if size[0] >= size[1]:
            assert width <= 1280 and height <= 800
        else:
            assert width <= 800 and height <= 1280
        assert abs(width / height - size[0] / size[1]) < 0.01


class TestFitImage:
    """Tests for fit_image."""

    def test_fit_image_resizes(self):
        img = Image.new("RGB", (400, 300))
        assert fit_image(img, 200, 100).size == (133, 100)

    def test_fit_image_small_image_is_returned_unchanged(self):
        img = Image.new("RGB", (100, 50))
        assert fit_image(img, 1280, 800) is img


class TestApplyOrientation:
    """Tests for apply_orientation."""

    def test_orientation_6_rotates_clockwise(self):
        result = apply_orientation(marked_image(), 6)
        assert result.size == (20, 40)
        assert result.getpixel((19, 0)) == BLUE

    def test_orientation_8_rotates_counter_clockwise(self):
        result = apply_orientation(marked_image(), 8)
        assert result.size == (20, 40)
        assert result.getpixel((0, 39)) == BLUE

    def test_orientation_3_rotates_180(self):
        result = apply_orientation(marked_image(), 3)
        assert result.size == (40, 20)
        assert result.getpixel((39, 19)) == BLUE

    @pytest.mark.parametrize("orientation", [0, 1, 2, 4, 5, 7, 42])
    def test_other_orientations_leave_image_untouched(self, orientation):
        img = marked_image()
        assert apply_orientation(img, orientation) is img


class TestDecodeImage:
    """Tests for decode_image."""

    def test_decode_jpeg(self, tmp_path):
        path = write_test_image(str(tmp_path / "photo.jpg"), 120, 80)
        img = decode_image(path)
        assert img.size == (120, 80)

    def test_decode_keeps_exif_block(self, tmp_path):
        exif = create_exif_bytes(date_time_original="2022:08:11 09:49:00")
        path = write_test_image(str(tmp_path / "photo.jpg"), 50, 50, exif=exif)
        img = decode_image(path)
        assert img.info.get("exif")

    def test_decode_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"not an image at all")
        with pytest.raises(ImageProcessingError):
            decode_image(str(path))

    def test_decode_missing_file_raises(self, tmp_path):
        with pytest.raises(ImageProcessingError):
            decode_image(str(tmp_path / "missing.jpg"))

    def test_decode_heic_uses_pillow_heif(self):
        heif_file = Mock()
        heif_file.to_pillow.return_value = Image.new("RGB", (30, 20))
        with patch(
            "frameo_miniatures.core.image_utils.pillow_heif.open_heif",
            return_value=heif_file,
        ) as mock_open:
            img = decode_image("/photos/IMG_1234.HEIC")

        mock_open.assert_called_once_with(
            "/photos/IMG_1234.HEIC", convert_hdr_to_8bit=True
        )
        assert img.size == (30, 20)


class TestEncodeImage:
    """Tests for encode_image."""

    def test_encode_webp(self):
        data = encode_image(marked_image(), "webp", 80)
        assert data[:4] == b"RIFF"
        assert data[8:12] == b"WEBP"

    @pytest.mark.parametrize("output_format", ["jpg", "jpeg"])
    def test_encode_jpeg(self, output_format):
        data = encode_image(marked_image(), output_format, 80)
        assert data[:2] == b"\xff\xd8"
        with Image.open(io.BytesIO(data)) as img:
            assert img.format == "JPEG"
            assert img.size == (40, 20)

    def test_encode_converts_to_rgb(self):
        img = Image.new("RGBA", (10, 10), color=(0, 255, 0, 128))
        data = encode_image(img, "jpg", 80)
        with Image.open(io.BytesIO(data)) as decoded:
            assert decoded.mode == "RGB"

    def test_encode_carries_no_metadata(self):
        img = marked_image()
        img.info["exif"] = create_exif_bytes(make="Canon")
        data = encode_image(img, "jpg", 80)
        with Image.open(io.BytesIO(data)) as decoded:
            assert "exif" not in decoded.info
