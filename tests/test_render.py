import numpy as np

from glyphseg import render_text_line
from glyphseg.segmentation import GlyphSegmenter


def _line_count(image):
    mask = (image[:, :, 0] < 128).astype(np.uint8)
    return len(GlyphSegmenter().find_lines(mask))


def test_render_draws_black_text_on_white():
    image = render_text_line("HELLO WORLD")

    assert image.shape == (200, 640, 3)
    assert image.dtype == np.uint8
    assert (image[0, 0] == 255).all()
    assert (image < 128).any()
    assert _line_count(image) == 1


def test_render_wraps_words_at_canvas_width():
    image = render_text_line("HELLO WORLD", width=150)

    assert _line_count(image) == 2


def test_render_empty_text_is_blank():
    assert (render_text_line("") == 255).all()
