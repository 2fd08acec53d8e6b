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

"""Small convolutional classifier for 28x28 glyph bitmaps."""

from __future__ import annotations

import torch
from torch import nn


class CharacterCNN(nn.Module):
    """One conv block followed by a linear read-out: conv5x5 -> ReLU -> maxpool -> dense."""

    def __init__(self, num_classes: int = 36, filters: int = 8, kernel_size: int = 5, image_size: int = 28) -> None:
        super().__init__()
        self.features = nn.Sequential(
            nn.Conv2d(1, filters, kernel_size=kernel_size),
            nn.ReLU(inplace=True),
            nn.MaxPool2d(kernel_size=2, stride=2),
        )
        pooled = (image_size - kernel_size + 1) // 2
        self.classifier = nn.Linear(filters * pooled * pooled, num_classes)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        x = self.features(x)
        x = torch.flatten(x, 1)
        return self.classifier(x)
