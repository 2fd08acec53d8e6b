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

"""Line and glyph segmentation from projection profiles."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from ..config import SegmentationConfig, SplitConfig
from ..logger import log_execution_time
from ..utils import Box, pad_box, smooth3
from .splitter import WideBoxSplitter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineBand:
    """Inclusive row range ``[top, bottom]`` holding one text line."""

    top: int
    bottom: int

    @property
    def height(self) -> int:
        return self.bottom - self.top + 1


class GlyphSegmenter:
    def __init__(self, config: Optional[SegmentationConfig] = None, split_config: Optional[SplitConfig] = None) -> None:
        self.config = config or SegmentationConfig()
        self.splitter = WideBoxSplitter(split_config)

    @log_execution_time
    def segment(self, mask: np.ndarray) -> List[Box]:
        """Return glyph boxes ordered line by line, left to right within a line."""

        if mask.ndim != 2:
            raise ValueError("Expected a single-channel binary mask")
        binary = (mask > 0).astype(np.uint8)
        if binary.size == 0:
            return []

        boxes: List[Box] = []
        for band in self.find_lines(binary):
            raw = self._segment_line(binary, band)
            if not raw:
                continue
            line_boxes = self._refine_line(binary, band, raw)
            line_boxes.sort(key=lambda b: b.x)
            boxes.extend(line_boxes)
        logger.debug("Segmented %d glyph boxes", len(boxes))
        return boxes

    def find_lines(self, binary: np.ndarray) -> List[LineBand]:
        """Bands of rows whose smoothed ink count exceeds a share of the peak row."""

        rows = smooth3(binary.sum(axis=1))
        if rows.size == 0:
            return []
        threshold = max(1.0, float(rows.max()) * self.config.row_threshold_ratio)

        bands: List[LineBand] = []
        height = rows.size
        y = 0
        while y < height:
            while y < height and rows[y] <= threshold:
                y += 1
            if y >= height:
                break
            top = y
            while y < height and rows[y] > threshold:
                y += 1
            band = LineBand(top, y - 1)
            if band.height < self.config.min_line_height:
                logger.debug("Dropping %d px band at row %d as noise", band.height, top)
                continue
            bands.append(band)
        return bands

    def _line_limits(self, line_height: int) -> Tuple[int, int, int, int]:
        cfg = self.config
        valley = max(1, int(math.floor(line_height * cfg.valley_ratio)))
        min_glyph = max(cfg.min_glyph_px, int(math.floor(line_height * cfg.min_glyph_ratio)))
        max_glyph = max(min_glyph + 1, int(math.floor(line_height * cfg.max_glyph_ratio)))
        min_segment = max(cfg.min_segment_px, int(math.floor(line_height * cfg.min_segment_ratio)))
        return valley, min_glyph, max_glyph, min_segment

    def _segment_line(self, binary: np.ndarray, band: LineBand) -> List[Box]:
        width = binary.shape[1]
        line_height = band.height
        cols = smooth3(binary[band.top:band.bottom + 1].sum(axis=0))
        valley, min_glyph, max_glyph, min_segment = self._line_limits(line_height)

        boxes: List[Box] = []

        def _emit(start: int, end: int) -> None:
            seg_w = end - start
            if seg_w >= min_segment:
                boxes.append(Box(start, band.top, seg_w, line_height))
            else:
                logger.debug("Dropping %d px sliver at column %d", seg_w, start)

        x = 0
        while x < width and cols[x] <= valley:
            x += 1

        while x < width:
            if x + min_glyph >= width:
                # Remainder narrower than a glyph; keep it if it is not a sliver.
                _emit(x, width)
                break

            cut = -1
            for j in range(x + min_glyph, min(width - 1, x + max_glyph)):
                if cols[j] <= valley and cols[j + 1] <= valley:
                    cut = j
                    break

            if cut > 0:
                _emit(x, cut)
                x = cut + 1
            elif x + max_glyph >= width:
                _emit(x, width)
                break
            else:
                window = cols[x + min_glyph:min(width, x + max_glyph)]
                cut = x + min_glyph + int(np.argmin(window))
                _emit(x, cut)
                x = min(width, cut + 1)

            while x < width and cols[x] <= valley:
                x += 1
        return boxes

    def _refine_line(self, binary: np.ndarray, band: LineBand, raw: List[Box]) -> List[Box]:
        """Micro-split double-width boxes, then hand anything still too wide to the splitter."""

        height, width = binary.shape
        padding = self.config.padding
        _, min_glyph, _, _ = self._line_limits(band.height)
        widths = sorted(box.w for box in raw)
        median_width = float(widths[len(widths) // 2] or min_glyph)

        refined: List[Box] = []
        for box in raw:
            pieces = self._micro_split(binary, box, band.height, median_width)
            if pieces is None and box.w > self.splitter.config.wide_ratio * median_width:
                split = self.splitter.split(box, binary, median_width)
                if len(split) >= 2:
                    pieces = split
            for piece in pieces or [box]:
                refined.append(pad_box(piece, width, height, padding))
        return refined

    def _micro_split(self, binary: np.ndarray, box: Box, line_height: int, median_width: float) -> Optional[List[Box]]:
        cfg = self.config
        if not (cfg.refine_min_ratio * median_width < box.w < cfg.refine_max_ratio * median_width):
            return None

        profile = smooth3(binary[box.y:box.y2, box.x:box.x2].sum(axis=0))
        box_w = profile.size
        if box_w < 3:
            return None

        white = max(1, int(math.floor(line_height * cfg.refine_white_ratio)))
        run_lo = int(math.floor(box_w * cfg.refine_run_start))
        run_hi = int(math.floor(box_w * cfg.refine_run_end))
        run_start = -1
        run_len = 0
        run_mid = -1
        for idx in range(run_lo, run_hi):
            if profile[idx] <= white:
                if run_len == 0:
                    run_start = idx
                run_len += 1
            elif run_len > 0:
                if run_len >= 2:
                    run_mid = (run_start + idx - 1) // 2
                run_len = 0
        if run_len >= 2 and run_mid < 0:
            run_mid = (run_start + run_hi - 1) // 2

        if run_mid >= 0:
            cut = run_mid
        else:
            cut = box_w // 2
            best = profile[cut]
            for idx in range(int(math.floor(box_w * cfg.refine_min_start)), int(math.floor(box_w * cfg.refine_min_end))):
                if profile[idx] < best:
                    best = profile[idx]
                    cut = idx
        depth = profile[cut]

        last = box_w - 1
        left_peak = max(profile[max(0, cut - 3)], profile[max(0, cut - 6)])
        right_peak = max(profile[min(last, cut + 3)], profile[min(last, cut + 6)])
        # Stroke gaps inside one glyph (the counter of "A") are shallow relative to the flanks.
        deep_enough = depth <= max(1.0, line_height * cfg.refine_depth_ratio) or depth <= cfg.refine_peak_ratio * min(
            left_peak, right_peak
        )
        min_left = max(cfg.refine_left_px, int(math.floor(median_width * cfg.refine_left_ratio)))
        min_right = max(cfg.refine_right_px, int(math.floor(median_width * cfg.refine_right_ratio)))
        if not (deep_enough and cut >= min_left and box_w - cut >= min_right):
            return None
        return [
            Box(box.x, box.y, cut, box.h),
            Box(box.x + cut, box.y, box_w - cut, box.h),
        ]


def segment_mask(
    mask: np.ndarray,
    config: Optional[SegmentationConfig] = None,
    split_config: Optional[SplitConfig] = None,
) -> List[Box]:
    """Functional wrapper around :class:`GlyphSegmenter`."""

    return GlyphSegmenter(config, split_config).segment(mask)
