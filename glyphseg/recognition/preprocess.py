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

"""Normalisation of glyph boxes into fixed-size classifier inputs."""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence, Tuple

import cv2 as cv
import numpy as np

from ..config import NormalizationConfig
from ..utils import EPSILON, Box, clamp_box, to_gray

logger = logging.getLogger(__name__)


def _blank(cfg: NormalizationConfig, invert: bool) -> np.ndarray:
    value = 0.0 if invert else 1.0
    return np.full((cfg.canvas_size, cfg.canvas_size), value, dtype=np.float32)


def _trim_extent(ink: np.ndarray, config: NormalizationConfig) -> Tuple[int, int, int, int]:
    """Shrink the ink window past near-empty outer columns and rows."""

    height, width = ink.shape
    x0, x1, y0, y1 = 0, width, 0, height
    col_thresh = max(1.0, height * config.trim_ink_factor)
    row_thresh = max(1.0, width * config.trim_ink_factor)
    min_extent = config.min_trim_extent

    trims = 0
    while x1 - x0 > min_extent and ink[y0:y1, x0].sum() <= col_thresh and trims < config.max_column_trims:
        x0 += 1
        trims += 1
    trims = 0
    while x1 - x0 > min_extent and ink[y0:y1, x1 - 1].sum() <= col_thresh and trims < config.max_column_trims:
        x1 -= 1
        trims += 1
    trims = 0
    while y1 - y0 > min_extent and ink[y0, x0:x1].sum() <= row_thresh and trims < config.max_row_trims:
        y0 += 1
        trims += 1
    trims = 0
    while y1 - y0 > min_extent and ink[y1 - 1, x0:x1].sum() <= row_thresh and trims < config.max_row_trims:
        y1 -= 1
        trims += 1
    return x0, x1, y0, y1


def normalize_glyph(
    image: np.ndarray,
    box: Box,
    content_target: Optional[int] = None,
    invert: Optional[bool] = None,
    config: Optional[NormalizationConfig] = None,
) -> np.ndarray:
    """Return a ``canvas_size`` square ``float32`` bitmap in ``[0, 1]`` for ``box``.

    The ink centroid is placed on the canvas centre and the larger box side is
    scaled to ``content_target`` pixels (clamped to ``[min_content, max_content]``).
    Background is 1.0 (white) unless ``invert`` is set. Space sentinels and
    boxes outside the image give a blank canvas.
    """

    cfg = config or NormalizationConfig()
    invert_flag = cfg.invert if invert is None else bool(invert)
    size = cfg.canvas_size
    if box.is_space:
        return _blank(cfg, invert_flag)

    height, width = image.shape[:2]
    region = clamp_box(box, width, height)
    if region.w == 0 or region.h == 0:
        logger.debug("Box %s lies outside the %dx%d image", box.as_tuple(), width, height)
        return _blank(cfg, invert_flag)

    gray = to_gray(image[region.y:region.y2, region.x:region.x2])
    ink = 255.0 - gray
    x0, x1, y0, y1 = _trim_extent(ink, cfg)
    gray = gray[y0:y1, x0:x1]
    ink = ink[y0:y1, x0:x1]
    box_h, box_w = gray.shape

    mass = float(ink.sum())
    if mass > 0:
        cx = float((ink.sum(axis=0) * np.arange(box_w)).sum()) / mass
        cy = float((ink.sum(axis=1) * np.arange(box_h)).sum()) / mass
    else:
        cx = box_w / 2.0
        cy = box_h / 2.0

    content = max(cfg.min_content, min(cfg.max_content, int(cfg.content_target if content_target is None else content_target)))
    scale = min(content / max(box_w, EPSILON), content / max(box_h, EPSILON))
    target_w = max(1, int(math.floor(box_w * scale)))
    target_h = max(1, int(math.floor(box_h * scale)))
    half = size / 2.0
    offset_x = max(0, int(math.floor(half - cx * scale)))
    offset_y = max(0, int(math.floor(half - cy * scale)))

    resized = cv.resize(gray.astype(np.float32), (target_w, target_h), interpolation=cv.INTER_LINEAR)
    canvas = np.full((size, size), 255.0, dtype=np.float32)
    end_x = min(size, offset_x + target_w)
    end_y = min(size, offset_y + target_h)
    canvas[offset_y:end_y, offset_x:end_x] = resized[: end_y - offset_y, : end_x - offset_x]

    normalized = np.clip(canvas / 255.0, 0.0, 1.0)
    if invert_flag:
        normalized = 1.0 - normalized
    return normalized.astype(np.float32)


def normalize_glyphs(
    image: np.ndarray,
    boxes: Sequence[Box],
    config: Optional[NormalizationConfig] = None,
) -> np.ndarray:
    """Stack normalised bitmaps for every non-space box, in order."""

    cfg = config or NormalizationConfig()
    glyphs = [normalize_glyph(image, box, config=cfg) for box in boxes if not box.is_space]
    if not glyphs:
        return np.zeros((0, cfg.canvas_size, cfg.canvas_size), dtype=np.float32)
    return np.stack(glyphs, axis=0)
