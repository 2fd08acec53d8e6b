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

"""Utilities for running the glyph classifier."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import numpy as np
import torch

from ..config import RecognitionConfig
from .model import CharacterCNN

logger = logging.getLogger(__name__)

GLYPH_SIZE = 28


class GlyphClassifier(Protocol):
    """Anything that maps an ``n x 784`` batch to ``n x num_classes`` probabilities."""

    charset: str

    def predict_proba(self, batch: np.ndarray) -> np.ndarray:
        ...


def _load_state(path) -> dict:
    state = torch.load(path, map_location="cpu")
    if isinstance(state, dict) and "model_state_dict" in state:
        state = state["model_state_dict"]
    return state


class CharacterRecognizer:
    def __init__(self, config: RecognitionConfig, model: Optional[torch.nn.Module] = None) -> None:
        self.config = config
        self.charset = config.charset
        self.device = torch.device(config.device or ("cuda" if torch.cuda.is_available() else "cpu"))
        if model is None:
            weights = config.weights_path
            if weights is None or not weights.exists():
                raise FileNotFoundError(f"Recognizer weights not found: {weights}")
            model = CharacterCNN(len(self.charset))
            model.load_state_dict(_load_state(weights))
            logger.info("Loaded recognizer weights from %s", weights)
        self.model = model.to(self.device)
        self.model.eval()

    def predict_proba(self, batch: np.ndarray) -> np.ndarray:
        """Return softmax probabilities for a contiguous ``n x 784`` (or ``n x 28 x 28``) batch."""

        flat = np.ascontiguousarray(batch, dtype=np.float32).reshape(-1, GLYPH_SIZE * GLYPH_SIZE)
        count = flat.shape[0]
        if count == 0:
            return np.zeros((0, len(self.charset)), dtype=np.float32)

        step = max(1, int(self.config.batch_size))
        outputs = []
        with torch.no_grad():
            for start in range(0, count, step):
                chunk = torch.from_numpy(flat[start:start + step]).view(-1, 1, GLYPH_SIZE, GLYPH_SIZE)
                logits = self.model(chunk.to(self.device))
                outputs.append(torch.softmax(logits, dim=1).cpu().numpy())
        probs = np.concatenate(outputs, axis=0)
        if probs.shape[1] != len(self.charset):
            raise ValueError(f"Classifier returned {probs.shape[1]} classes for a {len(self.charset)}-symbol charset")
        return probs
