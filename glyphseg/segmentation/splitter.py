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

"""Repair of boxes that likely hold two or more touching glyphs."""

from __future__ import annotations

import logging
import math
from typing import List, Optional

import cv2 as cv
import numpy as np

from ..config import SplitConfig
from ..utils import Box, clamp_box

logger = logging.getLogger(__name__)

_CROSS_KERNEL = cv.getStructuringElement(cv.MORPH_CROSS, (3, 3))


class WideBoxSplitter:
    """Fallback chain for wide boxes: components, erosion, valley whitening, mass balance.

    Each stage only runs when the previous one could not produce at least two
    pieces. The chain never raises; an unsplittable box comes back unchanged.
    """

    def __init__(self, config: Optional[SplitConfig] = None) -> None:
        self.config = config or SplitConfig()

    def split(self, box: Box, mask: np.ndarray, median_width: float) -> List[Box]:
        if box.is_space or box.w <= self.config.wide_ratio * median_width:
            return [box]

        pieces = self.split_connected_components(box, mask)
        if len(pieces) >= 2:
            return pieces

        pieces = self.split_by_mass(box, mask, median_width)
        if len(pieces) >= 2:
            return pieces

        logger.debug("Leaving wide box unsplit: %s (median width %.1f)", box.as_tuple(), median_width)
        return [box]

    def split_connected_components(self, box: Box, mask: np.ndarray) -> List[Box]:
        """Split ``box`` along the 4-connected ink components inside it."""

        height, width = mask.shape[:2]
        region = clamp_box(box, width, height)
        sub = (mask[region.y:region.y2, region.x:region.x2] > 0).astype(np.uint8)
        if sub.size == 0:
            return [box]

        min_area = max(int(self.config.min_component_px), int(math.floor(sub.size * self.config.min_component_fraction)))

        components = self._components(sub, region, min_area)
        for iterations in self.config.erosion_steps:
            if len(components) >= 2:
                break
            # Thin bridges between touching glyphs disappear before the glyph bodies do.
            eroded = cv.erode(
                sub,
                _CROSS_KERNEL,
                iterations=int(iterations),
                borderType=cv.BORDER_CONSTANT,
                borderValue=0,
            )
            components = self._components(eroded, region, min_area)

        if len(components) < 2:
            whitened = self._whiten_valleys(sub)
            if whitened is not None:
                components = self._components(whitened, region, min_area)

        return components if len(components) >= 2 else [box]

    def split_by_mass(self, box: Box, mask: np.ndarray, median_width: float) -> List[Box]:
        """Cut where a fixed share of the ink mass has accumulated, nudged to a nearby minimum."""

        cfg = self.config
        if box.is_space or box.w <= cfg.wide_ratio * median_width:
            return [box]

        height, width = mask.shape[:2]
        region = clamp_box(box, width, height)
        columns = (mask[region.y:region.y2, region.x:region.x2] > 0).sum(axis=0).astype(np.float64)
        box_w = columns.size
        total = float(columns.sum())
        if box_w < 3 or total <= 0:
            return [box]

        target = total * cfg.mass_fraction
        cut = int(math.floor(box_w * cfg.mass_default_cut))
        accumulated = 0.0
        for idx in range(int(math.floor(box_w * cfg.mass_scan_start)), int(math.floor(box_w * cfg.mass_scan_end))):
            accumulated += columns[idx]
            if accumulated >= target:
                cut = idx
                break

        best_idx = cut
        best_value = columns[cut]
        radius = int(cfg.mass_search_radius)
        for idx in range(max(1, cut - radius), min(box_w - 2, cut + radius) + 1):
            if columns[idx] < best_value:
                best_value = columns[idx]
                best_idx = idx

        min_width = max(int(cfg.mass_min_width_px), int(math.floor(median_width * cfg.mass_min_width_ratio)))
        if best_idx < min_width or box_w - best_idx < min_width:
            return [box]
        return [
            Box(region.x, region.y, best_idx, region.h),
            Box(region.x + best_idx, region.y, box_w - best_idx, region.h),
        ]

    def _components(self, sub: np.ndarray, region: Box, min_area: int) -> List[Box]:
        count, _, stats, _ = cv.connectedComponentsWithStats(sub, connectivity=4)
        boxes: List[Box] = []
        # Label 0 is the background.
        for label in range(1, count):
            x, y, w, h, area = (int(v) for v in stats[label])
            if area < min_area:
                continue
            boxes.append(Box(region.x + x, region.y + y, w, h))
        boxes.sort(key=lambda b: b.x)
        return boxes

    def _whiten_valleys(self, sub: np.ndarray) -> Optional[np.ndarray]:
        sub_h, sub_w = sub.shape
        if sub_w < 3:
            return None
        columns = sub.sum(axis=0)
        valley = max(1, int(math.floor(sub_h * self.config.whitening_ratio)))
        low = columns <= valley
        selected = low[1:-1] & (low[:-2] | low[2:])
        if not np.any(selected):
            return None
        whitened = sub.copy()
        whitened[:, 1:-1][:, selected] = 0
        return whitened


def split_by_connected_components(box: Box, mask: np.ndarray, config: Optional[SplitConfig] = None) -> List[Box]:
    return WideBoxSplitter(config).split_connected_components(box, mask)


def split_wide_box(box: Box, mask: np.ndarray, median_width: float, config: Optional[SplitConfig] = None) -> List[Box]:
    return WideBoxSplitter(config).split(box, mask, median_width)
