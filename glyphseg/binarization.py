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

"""Locally adaptive (Sauvola-style) binarization."""

from __future__ import annotations

from typing import Optional, Tuple

import cv2 as cv
import numpy as np

from .config import BinarizationConfig
from .logger import log_execution_time
from .utils import to_gray


def _window_bounds(size: int, radius: int) -> Tuple[np.ndarray, np.ndarray]:
    """Inclusive-exclusive window limits per index, clamped to ``[0, size]``."""

    idx = np.arange(size)
    lo = np.clip(idx - radius, 0, size - 1)
    hi = np.clip(idx + radius, 0, size - 1) + 1
    return lo, hi


@log_execution_time
def binarize(
    image: np.ndarray,
    window_radius: Optional[int] = None,
    k: Optional[float] = None,
    config: Optional[BinarizationConfig] = None,
) -> np.ndarray:
    """Return an ink mask (``uint8`` 0/1, 1 = ink) for ``image``.

    A pixel is ink when its intensity is strictly below
    ``m * (1 + k * (s / 128 - 1))`` where ``m``/``s`` are the mean and standard
    deviation of the ``(2r + 1)^2`` window around it, clamped at the borders.
    Window sums come from summed-area tables, so the cost is O(W * H)
    regardless of the radius.
    """

    cfg = config or BinarizationConfig()
    radius = max(1, int(cfg.window_radius if window_radius is None else window_radius))
    k_value = float(cfg.k if k is None else k)

    gray = to_gray(image)
    height, width = gray.shape
    if height == 0 or width == 0:
        return np.zeros((height, width), dtype=np.uint8)

    integral, integral_sq = cv.integral2(gray, sdepth=cv.CV_64F, sqdepth=cv.CV_64F)

    y0, y1 = _window_bounds(height, radius)
    x0, x1 = _window_bounds(width, radius)
    Y0, X0 = np.meshgrid(y0, x0, indexing="ij")
    Y1, X1 = np.meshgrid(y1, x1, indexing="ij")

    window_sum = integral[Y1, X1] - integral[Y0, X1] - integral[Y1, X0] + integral[Y0, X0]
    window_sq = integral_sq[Y1, X1] - integral_sq[Y0, X1] - integral_sq[Y1, X0] + integral_sq[Y0, X0]
    # Clamped windows always contain the pixel itself, so area >= 1.
    area = ((Y1 - Y0) * (X1 - X0)).astype(np.float64)

    mean = window_sum / area
    variance = np.maximum(0.0, window_sq / area - mean * mean)
    std = np.sqrt(variance)
    threshold = mean * (1.0 + k_value * (std / 128.0 - 1.0))
    return (gray < threshold).astype(np.uint8)
