import numpy as np
import pytest

from glyphseg.binarization import binarize
from glyphseg.config import SegmentationConfig
from glyphseg.segmentation import GlyphSegmenter, LineBand, segment_mask
from glyphseg.utils import Box

from conftest import BLOCK_STARTS, BLOCK_WIDTH, BLOCK_TOP, BLOCK_BOTTOM, make_block_line


def test_block_line_yields_one_box_per_block(block_line):
    boxes = segment_mask(binarize(block_line))

    assert len(boxes) == len(BLOCK_STARTS)
    assert [box.x for box in boxes] == sorted(box.x for box in boxes)
    for box, start in zip(boxes, BLOCK_STARTS):
        assert box.x < start
        assert box.x2 > start + BLOCK_WIDTH - 1
        assert box.y < BLOCK_TOP
        assert box.y2 > BLOCK_BOTTOM
        assert not box.is_space


def test_every_ink_pixel_is_covered(block_line):
    mask = binarize(block_line)
    boxes = segment_mask(mask)

    covered = np.zeros_like(mask)
    for box in boxes:
        covered[box.y:box.y2, box.x:box.x2] = 1
    assert not np.any(mask.astype(bool) & ~covered.astype(bool))


def test_find_lines_separates_text_lines():
    image = np.full((100, 120), 255, dtype=np.uint8)
    image[10:30, 10:110] = 0
    image[55:80, 10:110] = 0
    segmenter = GlyphSegmenter()

    bands = segmenter.find_lines((image == 0).astype(np.uint8))

    assert len(bands) == 2
    assert isinstance(bands[0], LineBand)
    assert bands[0].bottom < 45 < bands[1].top
    assert bands[1].height >= 25


def test_short_bands_are_noise():
    mask = np.zeros((40, 120), dtype=np.uint8)
    mask[10:13, 10:110] = 1

    assert GlyphSegmenter().find_lines(mask) == []
    assert segment_mask(mask) == []


def test_empty_mask_gives_no_boxes():
    assert segment_mask(np.zeros((50, 50), dtype=np.uint8)) == []
    assert segment_mask(np.zeros((0, 0), dtype=np.uint8)) == []


def test_segment_rejects_colour_input(block_line):
    with pytest.raises(ValueError):
        segment_mask(block_line)


def test_lines_are_ordered_top_to_bottom():
    top = make_block_line(starts=(20, 38, 56))
    bottom = make_block_line(starts=(20, 38, 56, 74))
    image = np.concatenate([top, bottom], axis=0)

    boxes = segment_mask(binarize(image))

    assert len(boxes) == 7
    assert all(box.y < 60 for box in boxes[:3])
    assert all(box.y >= 60 for box in boxes[3:])
    assert [box.x for box in boxes[3:]] == sorted(box.x for box in boxes[3:])


def test_boxes_stay_inside_image():
    image = make_block_line(starts=(2, 20, 38), width=50)

    boxes = segment_mask(binarize(image))

    assert boxes
    for box in boxes:
        assert box.x >= 0 and box.y >= 0
        assert box.x2 <= 50 and box.y2 <= 60


def _pair_mask(left_end, right_start, height=30, width=40):
    """Two full-height glyphs in columns [2, left_end) and [right_start, 38)."""

    mask = np.zeros((height, width), dtype=np.uint8)
    mask[:, 2:left_end] = 1
    mask[:, right_start:38] = 1
    return mask


def test_touching_pair_is_split_at_central_valley():
    mask = _pair_mask(17, 23)

    pieces = GlyphSegmenter()._micro_split(mask, Box(0, 0, 40, 30), 30, 20.0)

    assert pieces == [Box(0, 0, 20, 30), Box(20, 0, 20, 30)]


def test_shallow_valley_inside_glyph_is_kept():
    # Half-height ink in the middle, like the counter under the crossbar of an "A".
    mask = np.zeros((30, 40), dtype=np.uint8)
    mask[:, 2:38] = 1
    mask[15:, 18:22] = 0

    assert GlyphSegmenter()._micro_split(mask, Box(0, 0, 40, 30), 30, 20.0) is None


def test_micro_split_only_considers_double_width_boxes():
    mask = _pair_mask(17, 23)

    assert GlyphSegmenter()._micro_split(mask, Box(0, 0, 40, 30), 30, 30.0) is None


def test_micro_split_respects_minimum_piece_widths():
    mask = _pair_mask(24, 27)
    box = Box(0, 0, 40, 30)

    assert GlyphSegmenter()._micro_split(mask, box, 30, 20.0) == [Box(0, 0, 25, 30), Box(25, 0, 15, 30)]
    assert GlyphSegmenter(SegmentationConfig(refine_right_px=16))._micro_split(mask, box, 30, 20.0) is None
    assert GlyphSegmenter(SegmentationConfig(refine_left_px=26))._micro_split(mask, box, 30, 20.0) is None


def test_long_run_without_valleys_is_force_cut():
    mask = np.zeros((30, 140), dtype=np.uint8)
    mask[5:25, 10:110] = 1
    segmenter = GlyphSegmenter()
    (band,) = segmenter.find_lines(mask)
    _, _, max_glyph, _ = segmenter._line_limits(band.height)

    raw = segmenter._segment_line(mask, band)

    assert band == LineBand(4, 25)
    assert len(raw) == 11
    assert raw[0] == Box(9, band.top, 7, band.height)
    assert all(box.w <= max_glyph for box in raw)
    assert all(right.x == left.x2 + 1 for left, right in zip(raw, raw[1:]))
