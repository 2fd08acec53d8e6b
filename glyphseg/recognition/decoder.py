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

"""Character decoding policy over classifier probabilities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..config import DecoderConfig
from ..utils import Box


@dataclass(slots=True)
class Prediction:
    character: str
    confidence: float
    probabilities: np.ndarray


class TextDecoder:
    """Turn per-glyph probabilities into text with a light bigram nudge and shape checks."""

    def __init__(self, charset: str, config: Optional[DecoderConfig] = None) -> None:
        self.config = config or DecoderConfig()
        self.charset = charset
        self.char_to_index = {char: idx for idx, char in enumerate(charset)}

    def bigram_bias(self, previous: str) -> np.ndarray:
        cfg = self.config
        bias = np.zeros(len(self.charset), dtype=np.float64)
        if not previous:
            return bias
        for idx, char in enumerate(self.charset):
            if previous.isalpha() and previous not in cfg.vowels and char in cfg.vowels:
                bias[idx] += cfg.vowel_bonus
            if previous.isdigit() and char.isdigit():
                bias[idx] -= cfg.digit_penalty
        return bias

    def choose(self, probabilities: np.ndarray, box: Box, previous: str = "") -> int:
        cfg = self.config
        probs = np.asarray(probabilities, dtype=np.float64)
        best = int(np.argmax(probs + self.bigram_bias(previous)))

        aspect = box.w / max(1, box.h)
        if aspect > cfg.narrow_max_aspect and self.charset[best] in cfg.narrow_chars:
            for idx in np.argsort(-probs, kind="stable"):
                if self.charset[int(idx)] not in cfg.narrow_chars:
                    best = int(idx)
                    break

        letter, digit = cfg.round_pair[0], cfg.round_pair[1]
        letter_idx = self.char_to_index.get(letter)
        digit_idx = self.char_to_index.get(digit)
        if letter_idx is not None and digit_idx is not None and best in (letter_idx, digit_idx):
            close = abs(probs[letter_idx] - probs[digit_idx]) < cfg.round_margin
            if close and cfg.round_min_aspect < aspect < cfg.round_max_aspect:
                best = letter_idx
        return best

    def decode(self, boxes: Sequence[Box], probabilities: np.ndarray) -> Tuple[str, List[Prediction]]:
        """Decode ``boxes`` (sentinels included) against one probability row per glyph box."""

        glyph_count = sum(1 for box in boxes if not box.is_space)
        probs = np.asarray(probabilities, dtype=np.float32).reshape(glyph_count, -1) if glyph_count else probabilities
        if glyph_count and probs.shape[1] != len(self.charset):
            raise ValueError(f"Expected {len(self.charset)} classes, got {probs.shape[1]}")

        text: List[str] = []
        predictions: List[Prediction] = []
        row = 0
        for box in boxes:
            if box.is_space:
                text.append(" ")
                continue
            previous = text[-1] if text else ""
            idx = self.choose(probs[row], box, previous)
            predictions.append(Prediction(character=self.charset[idx], confidence=float(probs[row][idx]), probabilities=probs[row]))
            text.append(self.charset[idx])
            row += 1
        return "".join(text), predictions
