import numpy as np

from glyphseg.binarization import binarize
from glyphseg.config import BinarizationConfig


def test_binarize_marks_blocks_as_ink(block_line):
    mask = binarize(block_line, window_radius=10)

    assert mask.dtype == np.uint8
    assert mask.shape == block_line.shape[:2]
    assert set(np.unique(mask)) <= {0, 1}
    assert mask[30, 25] == 1
    assert mask[30, 5] == 0
    assert mask[5, 25] == 0


def test_binarize_is_deterministic(block_line):
    first = binarize(block_line)
    second = binarize(block_line)

    assert np.array_equal(first, second)


def test_binarize_threshold_is_strict():
    gray = np.full((20, 20), 128, dtype=np.uint8)

    # With k = 0 the threshold equals the window mean, which equals every pixel.
    mask = binarize(gray, window_radius=3, k=0.0)

    assert mask.sum() == 0


def test_single_dark_pixel_on_white():
    image = np.full((21, 21), 255, dtype=np.uint8)
    image[10, 10] = 0

    mask = binarize(image, config=BinarizationConfig(window_radius=10, k=0.2))

    assert mask[10, 10] == 1
    assert mask.sum() == 1


def test_colour_and_gray_inputs_agree(block_line):
    gray = block_line[:, :, 0].copy()

    assert np.array_equal(binarize(gray), binarize(block_line))


def test_degenerate_sizes():
    assert binarize(np.full((1, 1), 200, dtype=np.uint8)).shape == (1, 1)
    assert binarize(np.zeros((0, 5), dtype=np.uint8)).shape == (0, 5)
    # Radius below 1 is raised to 1.
    assert binarize(np.full((3, 3), 90, dtype=np.uint8), window_radius=0).sum() == 0
