import numpy as np
import pytest

# Three words of 5, 5 and 3 solid glyph blocks; 6 px gaps inside a word, 24 px between words.
BLOCK_STARTS = (20, 38, 56, 74, 92, 128, 146, 164, 182, 200, 236, 254, 272)
BLOCK_WIDTH = 12
BLOCK_TOP = 18
BLOCK_BOTTOM = 41


def make_block_line(starts=BLOCK_STARTS, height=60, width=310, top=BLOCK_TOP, bottom=BLOCK_BOTTOM):
    image = np.full((height, width, 3), 255, dtype=np.uint8)
    for x in starts:
        image[top:bottom + 1, x:x + BLOCK_WIDTH] = 0
    return image


def make_dashed_lines(height=200, width=400, rows=(40, 70, 100, 130, 160)):
    image = np.full((height, width, 3), 255, dtype=np.uint8)
    for y in rows:
        for x in range(40, 360, 18):
            image[y:y + 3, x:x + 12] = 0
    return image


@pytest.fixture
def block_line():
    return make_block_line()


@pytest.fixture
def dashed_lines():
    return make_dashed_lines()
