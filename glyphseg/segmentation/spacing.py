# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Word-space inference from inter-glyph gaps."""

from __future__ import annotations

from typing import List, Optional, Sequence

from ..config import SpacingConfig
from ..utils import Box, upper_median


def group_lines(boxes: Sequence[Box], line_height: float) -> List[List[Box]]:
    """Cluster consecutive boxes whose top lies within ``line_height`` of the group's first box."""

    groups: List[List[Box]] = []
    current: List[Box] = []
    for box in boxes:
        if not current or abs(box.y - current[0].y) < line_height:
            current.append(box)
        else:
            groups.append(current)
            current = [box]
    if current:
        groups.append(current)
    return groups


def insert_spaces(
    boxes: Sequence[Box],
    config: Optional[SpacingConfig] = None,
    padding: Optional[int] = None,
) -> List[Box]:
    """Insert zero-width sentinel boxes where a gap is much wider than the line's median gap.

    Gaps are measured between the unpadded glyph extents: ``padding`` (the
    per-side growth applied by the segmenter, ``box_padding`` by default) is
    added back twice. Existing sentinels are discarded and recomputed, so
    applying the function twice gives the same result as applying it once.
    Fewer than ``min_boxes`` glyphs are returned unchanged.
    """

    cfg = config or SpacingConfig()
    grow = 2 * int(cfg.box_padding if padding is None else padding)
    glyphs = [box for box in boxes if not box.is_space]
    if len(glyphs) < cfg.min_boxes:
        return list(boxes)

    glyphs.sort(key=lambda b: (b.y, b.x))
    mean_height = sum(box.h for box in glyphs) / len(glyphs)
    line_height = max(cfg.min_line_height, int(round(mean_height)))

    spaced: List[Box] = []
    for group in group_lines(glyphs, line_height):
        group.sort(key=lambda b: b.x)
        gaps = [right.x - left.x2 for left, right in zip(group, group[1:])]
        ink_gaps = [gap + grow for gap in gaps]
        # Touching glyphs give a zero median; one pixel keeps the ratio test meaningful.
        median = max(1.0, upper_median(ink_gaps))
        for idx, box in enumerate(group):
            spaced.append(box)
            if idx == len(group) - 1:
                continue
            gap = gaps[idx]
            if ink_gaps[idx] > cfg.gap_factor * median:
                spaced.append(Box.space(box.x2 + gap // 2, box.y, box.h))
    return spaced
