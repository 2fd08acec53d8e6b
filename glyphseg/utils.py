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

"""General-purpose utilities shared by the pipeline stages."""

from __future__ import annotations

import os
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

EPSILON = 1e-6


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle in source-image pixels.

    ``w == 0`` marks an inferred inter-word space rather than an ink region;
    check :attr:`is_space` before cropping.
    """

    x: int
    y: int
    w: int
    h: int

    @property
    def is_space(self) -> bool:
        return self.w == 0

    @property
    def x2(self) -> int:
        return self.x + self.w

    @property
    def y2(self) -> int:
        return self.y + self.h

    def area(self) -> int:
        return max(0, self.w) * max(0, self.h)

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return self.x, self.y, self.w, self.h

    @classmethod
    def space(cls, x: int, y: int, h: int) -> "Box":
        return cls(int(x), int(y), 0, int(h))


def clamp_box(box: Box, width: int, height: int) -> Box:
    """Clip ``box`` to ``[0, width) x [0, height)``; may return an empty box."""

    x1 = max(0, min(int(box.x), width))
    y1 = max(0, min(int(box.y), height))
    x2 = max(x1, min(int(box.x + box.w), width))
    y2 = max(y1, min(int(box.y + box.h), height))
    return Box(x1, y1, x2 - x1, y2 - y1)


def pad_box(box: Box, width: int, height: int, padding: int = 1) -> Box:
    """Grow ``box`` by ``padding`` on every side, clamped to the image."""

    x1 = max(0, box.x - padding)
    y1 = max(0, box.y - padding)
    x2 = min(width, box.x + box.w + padding)
    y2 = min(height, box.y + box.h + padding)
    return Box(x1, y1, max(0, x2 - x1), max(0, y2 - y1))


def crop(image: np.ndarray, box: Box) -> np.ndarray:
    """Return the rectangular crop denoted by ``box`` (clamped to the image)."""

    height, width = image.shape[:2]
    clamped = clamp_box(box, width, height)
    return image[clamped.y:clamped.y2, clamped.x:clamped.x2]


def to_gray(image: np.ndarray) -> np.ndarray:
    """Return the ``(r + g + b) / 3`` intensity plane as ``float64``.

    Channel order is irrelevant for the plain mean, so BGR arrays decoded by
    OpenCV work unchanged. An alpha channel is ignored.
    """

    if image.ndim == 2:
        return image.astype(np.float64)
    if image.ndim == 3 and image.shape[2] in (3, 4):
        return image[:, :, :3].astype(np.float64).mean(axis=2)
    if image.ndim == 3 and image.shape[2] == 1:
        return image[:, :, 0].astype(np.float64)
    raise ValueError(f"Expected a grayscale or colour image, got shape {image.shape}")


def smooth3(values: np.ndarray) -> np.ndarray:
    """3-tap running average over interior samples.

    The update is sequential, so each sample sees its already-smoothed left
    neighbour. End samples are left untouched.
    """

    out = np.asarray(values, dtype=np.float64).copy()
    for idx in range(1, out.size - 1):
        out[idx] = (out[idx - 1] + out[idx] + out[idx + 1]) / 3.0
    return out


def upper_median(values: Sequence[float]) -> float:
    """Element at ``len // 2`` of the sorted values (0 for an empty input)."""

    if not values:
        return 0.0
    ordered: List[float] = sorted(values)
    return float(ordered[len(ordered) // 2])


def set_global_seed(seed: Optional[int]) -> None:
    """Seed Python, NumPy and PyTorch for deterministic runs."""

    if seed is None:
        return

    value = int(seed)
    random.seed(value)
    np.random.seed(value)
    os.environ.setdefault("PYTHONHASHSEED", str(value))

    import torch

    torch.manual_seed(value)
    if torch.cuda.is_available():  # depends on runtime hardware
        torch.cuda.manual_seed_all(value)
        torch.backends.cudnn.deterministic = True
        torch.backends.cudnn.benchmark = False
