import numpy as np

from glyphseg.config import SplitConfig
from glyphseg.segmentation import WideBoxSplitter, split_by_connected_components, split_wide_box
from glyphseg.utils import Box


def _two_blobs(bridge_rows=None):
    mask = np.zeros((40, 60), dtype=np.uint8)
    mask[5:35, 5:20] = 1
    mask[5:35, 30:50] = 1
    if bridge_rows is not None:
        mask[bridge_rows, 20:30] = 1
    return mask


def test_separate_components_are_split():
    pieces = split_by_connected_components(Box(0, 0, 60, 40), _two_blobs())

    assert pieces == [Box(5, 5, 15, 30), Box(30, 5, 20, 30)]


def test_thin_bridge_is_eroded_away():
    mask = _two_blobs(bridge_rows=slice(20, 21))

    pieces = split_by_connected_components(Box(0, 0, 60, 40), mask)

    assert len(pieces) == 2
    assert pieces[0].x2 <= 20
    assert pieces[1].x >= 30


def test_valley_whitening_splits_thin_strokes():
    mask = np.zeros((40, 60), dtype=np.uint8)
    mask[5:35, 10:12] = 1
    mask[5:35, 40:42] = 1
    # A 2 px stroke joins the bars; erosion would remove the bars as well.
    mask[20:22, 12:40] = 1

    pieces = split_by_connected_components(Box(0, 0, 60, 40), mask)

    assert pieces == [Box(10, 5, 2, 30), Box(40, 5, 2, 30)]


def test_mass_balance_splits_solid_wide_box():
    mask = np.ones((30, 40), dtype=np.uint8)
    box = Box(0, 0, 40, 30)
    splitter = WideBoxSplitter()

    assert splitter.split_connected_components(box, mask) == [box]

    pieces = splitter.split_by_mass(box, mask, median_width=10)
    assert len(pieces) == 2
    left, right = pieces
    assert left.x == 0 and left.x2 == right.x and right.x2 == 40
    assert split_wide_box(box, mask, median_width=10) == pieces


def test_narrow_and_space_boxes_are_untouched():
    mask = np.ones((30, 40), dtype=np.uint8)
    narrow = Box(0, 0, 15, 30)
    space = Box.space(20, 0, 30)

    assert split_wide_box(narrow, mask, median_width=10) == [narrow]
    assert split_wide_box(space, mask, median_width=10) == [space]


def test_unsplittable_box_is_returned_unchanged():
    mask = np.ones((20, 9), dtype=np.uint8)
    box = Box(0, 0, 9, 20)

    assert split_wide_box(box, mask, median_width=4) == [box]


def test_custom_wide_ratio():
    mask = _two_blobs()
    box = Box(0, 0, 60, 40)

    assert split_wide_box(box, mask, median_width=30, config=SplitConfig(wide_ratio=2.5)) == [box]
    assert len(split_wide_box(box, mask, median_width=30, config=SplitConfig(wide_ratio=1.5))) == 2
