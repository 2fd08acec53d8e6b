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

"""Skew estimation by projection-profile variance, and canvas-expanding rotation."""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Tuple

import cv2 as cv
import numpy as np

from .binarization import binarize
from .config import BinarizationConfig, SkewConfig
from .logger import log_execution_time

logger = logging.getLogger(__name__)


def _downscale_mask(mask: np.ndarray, working_width: int) -> np.ndarray:
    """Nearest-neighbour shrink to at most ``working_width`` columns."""

    height, width = mask.shape
    target_w = max(1, min(int(working_width), width))
    scale = target_w / float(width)
    target_h = max(1, int(math.floor(height * scale)))
    src_x = np.minimum(width - 1, np.floor(np.arange(target_w) / scale).astype(np.int64))
    src_y = np.minimum(height - 1, np.floor(np.arange(target_h) / scale).astype(np.int64))
    return mask[np.ix_(src_y, src_x)]


def _candidate_angles(max_angle: float, step: float) -> List[float]:
    """Symmetric candidates ordered by magnitude, negative first on equal magnitude."""

    step = max(abs(float(step)), 1e-3)
    count = int(math.floor(abs(float(max_angle)) / step + 1e-9))
    angles = [0.0]
    for idx in range(1, count + 1):
        angles.extend([-idx * step, idx * step])
    return angles


def _profile_variance(ys: np.ndarray, xs: np.ndarray, angle_deg: float, center: Tuple[float, float], bins: int) -> float:
    rad = math.radians(angle_deg)
    sin_a = math.sin(rad)
    cos_a = math.cos(rad)
    cx, cy = center
    # Same convention as cv.getRotationMatrix2D, so the winner feeds rotate_image directly.
    rotated_y = -sin_a * (xs - cx) + cos_a * (ys - cy) + cy
    rows = np.floor(rotated_y + 0.5).astype(np.int64)
    rows = rows[(rows >= 0) & (rows < bins)]
    hist = np.bincount(rows, minlength=bins).astype(np.float64)
    return float(np.sum((hist - hist.mean()) ** 2))


@log_execution_time
def estimate_skew(mask: np.ndarray, config: Optional[SkewConfig] = None) -> float:
    """Return the rotation (degrees) that best levels the text in ``mask``.

    Passing the result to :func:`rotate_image` straightens the source image.
    Returns ``0.0`` for masks without ink.
    """

    cfg = config or SkewConfig()
    if mask.ndim != 2:
        raise ValueError("Expected a single-channel binary mask")
    if mask.size == 0:
        return 0.0

    small = _downscale_mask(mask, cfg.working_width)
    ys, xs = np.nonzero(small)
    if ys.size == 0:
        return 0.0

    height, width = small.shape
    center = (width / 2.0, height / 2.0)
    ys = ys.astype(np.float64)
    xs = xs.astype(np.float64)

    best_angle = 0.0
    best_score = -math.inf
    # Candidates arrive in tie-break order; only a strictly better score replaces the leader.
    for angle in _candidate_angles(cfg.max_angle, cfg.angle_step):
        score = _profile_variance(ys, xs, angle, center, height)
        if score > best_score:
            best_score = score
            best_angle = angle
    logger.debug("Estimated skew %.1f deg (score %.1f)", best_angle, best_score)
    return float(best_angle)


def rotate_image(image: np.ndarray, angle_deg: float, config: Optional[SkewConfig] = None) -> np.ndarray:
    """Rotate ``image`` about its centre onto a canvas large enough to hold it.

    Positive angles rotate counter-clockwise on screen. Uncovered regions are
    filled with white. Angles below ``min_rotation`` return ``image`` untouched.
    """

    cfg = config or SkewConfig()
    if abs(angle_deg) < cfg.min_rotation:
        return image

    height, width = image.shape[:2]
    if height == 0 or width == 0:
        return image

    center = (width / 2.0, height / 2.0)
    rotation = cv.getRotationMatrix2D(center, float(angle_deg), 1.0)
    cos = abs(rotation[0, 0])
    sin = abs(rotation[0, 1])
    new_width = int(math.ceil(width * cos + height * sin - 1e-9))
    new_height = int(math.ceil(width * sin + height * cos - 1e-9))
    rotation[0, 2] += new_width / 2.0 - center[0]
    rotation[1, 2] += new_height / 2.0 - center[1]

    border = (255,) * (image.shape[2] if image.ndim == 3 else 1)
    return cv.warpAffine(
        image,
        rotation,
        (new_width, new_height),
        flags=cv.INTER_LINEAR,
        borderMode=cv.BORDER_CONSTANT,
        borderValue=border,
    )


def deskew(
    image: np.ndarray,
    skew_config: Optional[SkewConfig] = None,
    binarization_config: Optional[BinarizationConfig] = None,
    window_radius: Optional[int] = None,
) -> Tuple[np.ndarray, np.ndarray, float]:
    """Estimate and remove skew; returns ``(image, mask, angle)``.

    The mask always belongs to the returned image: it is recomputed after any
    rotation.
    """

    skew_cfg = skew_config or SkewConfig()
    bin_cfg = binarization_config or BinarizationConfig()
    mask = binarize(image, window_radius=window_radius, config=bin_cfg)
    if not skew_cfg.enabled:
        return image, mask, 0.0

    angle = estimate_skew(mask, skew_cfg)
    if abs(angle) < skew_cfg.min_rotation:
        return image, mask, 0.0

    rotated = rotate_image(image, angle, skew_cfg)
    return rotated, binarize(rotated, window_radius=window_radius, config=bin_cfg), angle
