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

"""High-level pipeline orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .config import PipelineConfig
from .recognition import GlyphClassifier, Prediction, TextDecoder, normalize_glyphs
from .segmentation import GlyphSegmenter, insert_spaces
from .skew import deskew
from .utils import Box

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    image: np.ndarray
    mask: np.ndarray
    angle: float
    boxes: List[Box]
    glyphs: np.ndarray
    text: Optional[str] = None
    predictions: List[Prediction] = field(default_factory=list)

    @property
    def glyph_boxes(self) -> List[Box]:
        return [box for box in self.boxes if not box.is_space]

    def batch(self) -> np.ndarray:
        """Contiguous ``n x 784`` float32 buffer, one row per glyph box."""

        count = self.glyphs.shape[0]
        return np.ascontiguousarray(self.glyphs.reshape(count, -1), dtype=np.float32)


class GlyphPipeline:
    """Binarize, deskew, segment, insert spaces and normalise; optionally classify."""

    def __init__(self, config: Optional[PipelineConfig] = None, classifier: Optional[GlyphClassifier] = None) -> None:
        self.config = config or PipelineConfig()
        self.segmenter = GlyphSegmenter(self.config.segmentation, self.config.split)
        self.classifier = classifier
        self.decoder: Optional[TextDecoder] = None
        if classifier is not None:
            self.decoder = TextDecoder(classifier.charset, self.config.decoder)

    def run(self, image: np.ndarray, window_radius: Optional[int] = None) -> PipelineResult:
        straight, mask, angle = deskew(
            image,
            skew_config=self.config.skew,
            binarization_config=self.config.binarization,
            window_radius=window_radius,
        )
        boxes = insert_spaces(
            self.segmenter.segment(mask),
            self.config.spacing,
            padding=self.config.segmentation.padding,
        )
        glyphs = normalize_glyphs(straight, boxes, self.config.normalization)
        result = PipelineResult(image=straight, mask=mask, angle=angle, boxes=boxes, glyphs=glyphs)
        logger.info(
            "Segmented %d glyphs (%d spaces), skew %.1f deg",
            glyphs.shape[0],
            len(boxes) - glyphs.shape[0],
            angle,
        )

        if self.classifier is None or self.decoder is None:
            return result
        if glyphs.shape[0] == 0:
            result.text = ""
            return result
        probabilities = self.classifier.predict_proba(result.batch())
        result.text, result.predictions = self.decoder.decode(boxes, probabilities)
        return result
