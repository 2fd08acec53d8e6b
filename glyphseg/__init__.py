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

"""Document-to-glyph segmentation: binarize, deskew, segment, split, space and normalise."""

from .binarization import binarize
from .config import (
    BinarizationConfig,
    DecoderConfig,
    NormalizationConfig,
    PipelineConfig,
    RecognitionConfig,
    SegmentationConfig,
    SkewConfig,
    SpacingConfig,
    SplitConfig,
    load_config_overrides_from_file,
    load_pipeline_config,
)
from .pipeline import GlyphPipeline, PipelineResult
from .recognition import normalize_glyph, normalize_glyphs
from .render import render_text_line
from .segmentation import GlyphSegmenter, insert_spaces, segment_mask, split_wide_box
from .skew import deskew, estimate_skew, rotate_image
from .utils import Box

__all__ = [
    "BinarizationConfig",
    "Box",
    "DecoderConfig",
    "GlyphPipeline",
    "GlyphSegmenter",
    "NormalizationConfig",
    "PipelineConfig",
    "PipelineResult",
    "RecognitionConfig",
    "SegmentationConfig",
    "SkewConfig",
    "SpacingConfig",
    "SplitConfig",
    "binarize",
    "deskew",
    "estimate_skew",
    "insert_spaces",
    "load_config_overrides_from_file",
    "load_pipeline_config",
    "normalize_glyph",
    "normalize_glyphs",
    "render_text_line",
    "rotate_image",
    "segment_mask",
    "split_wide_box",
]
