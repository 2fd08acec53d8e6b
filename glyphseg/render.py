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

"""Render a line of text onto a clean canvas with OpenCV's Hershey fonts."""

from __future__ import annotations

from typing import List

import cv2 as cv
import numpy as np

FONT = cv.FONT_HERSHEY_SIMPLEX


def _wrap_words(text: str, font_scale: float, thickness: int, max_width: int) -> List[str]:
    lines: List[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        (width, _), _ = cv.getTextSize(candidate, FONT, font_scale, thickness)
        if current and width > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def render_text_line(
    text: str,
    font_scale: float = 1.0,
    thickness: int = 2,
    width: int = 640,
    height: int = 200,
    margin: int = 10,
    line_spacing: float = 1.6,
) -> np.ndarray:
    """Draw ``text`` in black on a white ``height x width`` BGR canvas.

    Words wrap at the canvas width; lines that would fall below the canvas are
    dropped.
    """

    canvas = np.full((height, width, 3), 255, dtype=np.uint8)
    lines = _wrap_words(text.upper(), font_scale, thickness, max(1, width - 2 * margin))
    (_, text_h), baseline = cv.getTextSize("X", FONT, font_scale, thickness)
    step = max(1, int(round((text_h + baseline) * line_spacing)))
    y = margin + text_h
    for line in lines:
        if y + baseline > height:
            break
        cv.putText(canvas, line, (margin, y), FONT, font_scale, (0, 0, 0), thickness, cv.LINE_AA)
        y += step
    return canvas
