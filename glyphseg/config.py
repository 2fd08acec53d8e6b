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

"""Configuration helpers for the glyph segmentation pipeline.

Every heuristic threshold used by the stages lives in one of the dataclasses
below so tests and override files can exercise boundary behaviour directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from .utils import set_global_seed


def _strip_inline_comment(value: str) -> str:
    if "#" not in value:
        return value.strip()
    return value.split("#", 1)[0].strip()


def _parse_override_value(value: str, key: str = "") -> object:
    text = _strip_inline_comment(value)
    if not text:
        return ""
    if "charset" in key.lower():
        return text
    lowered = text.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    try:
        if any(sep in text for sep in (".", "e", "E")):
            return float(text)
        return int(text)
    except ValueError:
        return text


def load_config_overrides_from_file(path: Union[str, Path], *, allow_missing: bool = False) -> Dict[str, object]:
    """Parse a minimal ``key: value`` override file (no JSON required)."""

    file_path = Path(path)
    if not file_path.exists():
        if allow_missing:
            return {}
        raise FileNotFoundError(f"Config file not found: {file_path}")

    overrides: Dict[str, object] = {}
    with file_path.open("r", encoding="utf-8") as handle:
        for raw_line in handle:
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if ":" not in line:
                continue
            key, value = line.split(":", 1)
            key = key.strip()
            overrides[key] = _parse_override_value(value, key)
    return overrides


@dataclass
class BinarizationConfig:
    window_radius: int = 10
    k: float = 0.2
    # Uploaded photographs use a slightly wider window than rendered text
    # and are shrunk to at most photo_max_width columns first.
    photo_window_radius: int = 12
    photo_max_width: int = 1024


@dataclass
class SkewConfig:
    enabled: bool = True
    working_width: int = 256
    max_angle: int = 8
    angle_step: float = 1.0
    min_rotation: float = 0.1


@dataclass
class SegmentationConfig:
    row_threshold_ratio: float = 0.15
    min_line_height: int = 8
    valley_ratio: float = 0.12
    min_glyph_ratio: float = 0.35
    min_glyph_px: int = 6
    max_glyph_ratio: float = 1.2
    min_segment_ratio: float = 0.3
    min_segment_px: int = 4
    padding: int = 1
    refine_min_ratio: float = 1.5
    refine_max_ratio: float = 3.0
    refine_run_start: float = 0.3
    refine_run_end: float = 0.7
    refine_white_ratio: float = 0.06
    refine_min_start: float = 0.35
    refine_min_end: float = 0.65
    refine_depth_ratio: float = 0.08
    refine_peak_ratio: float = 0.35
    refine_left_ratio: float = 0.3
    refine_left_px: int = 4
    refine_right_ratio: float = 0.6
    refine_right_px: int = 5


@dataclass
class SplitConfig:
    wide_ratio: float = 1.8
    min_component_px: int = 5
    min_component_fraction: float = 0.01
    erosion_steps: Tuple[int, ...] = (2, 3)
    whitening_ratio: float = 0.06
    mass_fraction: float = 0.35
    mass_scan_start: float = 0.25
    mass_scan_end: float = 0.7
    mass_default_cut: float = 0.4
    mass_search_radius: int = 3
    mass_min_width_ratio: float = 0.4
    mass_min_width_px: int = 5


@dataclass
class SpacingConfig:
    min_boxes: int = 3
    min_line_height: int = 10
    gap_factor: float = 1.75
    # Must match SegmentationConfig.padding for segmenter output.
    box_padding: int = 1


@dataclass
class NormalizationConfig:
    canvas_size: int = 28
    content_target: int = 20
    min_content: int = 16
    max_content: int = 24
    trim_ink_factor: float = 6.0
    max_column_trims: int = 3
    max_row_trims: int = 2
    min_trim_extent: int = 8
    invert: bool = False


@dataclass
class RecognitionConfig:
    weights_path: Optional[Path] = None
    device: str = ""
    charset: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
    batch_size: int = 256


@dataclass
class DecoderConfig:
    vowels: str = "AEIOU"
    vowel_bonus: float = 0.02
    digit_penalty: float = 0.02
    narrow_chars: str = "I1"
    narrow_max_aspect: float = 0.65
    round_pair: str = "O0"
    round_margin: float = 0.05
    round_min_aspect: float = 0.8
    round_max_aspect: float = 1.2


@dataclass
class PipelineConfig:
    output_root: Path = Path("output")
    seed: Optional[int] = None
    binarization: BinarizationConfig = field(default_factory=BinarizationConfig)
    skew: SkewConfig = field(default_factory=SkewConfig)
    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    split: SplitConfig = field(default_factory=SplitConfig)
    spacing: SpacingConfig = field(default_factory=SpacingConfig)
    normalization: NormalizationConfig = field(default_factory=NormalizationConfig)
    recognition: RecognitionConfig = field(default_factory=RecognitionConfig)
    decoder: DecoderConfig = field(default_factory=DecoderConfig)

    def output_dir(self, name: str) -> Path:
        return self.output_root / name


def _pop_first(keys: Iterable[str], source: Dict[str, object], default: object) -> Any:
    for key in keys:
        if key in source:
            return source.pop(key)
    return default


def _ensure_path(value: object, base_path: Path) -> Path:
    path = Path(str(value))
    if not path.is_absolute():
        path = base_path / path
    return path


def _ensure_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _ensure_tuple_of_ints(value: object) -> Tuple[int, ...]:
    if isinstance(value, (tuple, list)):
        return tuple(int(v) for v in value)
    text = str(value).replace(",", " ")
    return tuple(int(token) for token in text.split() if token)


def load_pipeline_config(config_dict: Optional[Dict[str, object]], base_path: Optional[Path] = None) -> PipelineConfig:
    """Build a :class:`PipelineConfig` from flat override keys.

    Unknown keys are ignored. Relative paths resolve against ``base_path``
    (defaults to the working directory).
    """

    data = dict(config_dict or {})
    base = Path(base_path or Path.cwd())

    seed_value = _pop_first(["seed", "random_seed"], data, None)
    output_root = _ensure_path(_pop_first(["output_root", "output_dir"], data, "output"), base)

    defaults_bin = BinarizationConfig()
    binarization = BinarizationConfig(
        window_radius=int(_pop_first(["bin_radius", "bin_window_radius"], data, defaults_bin.window_radius)),
        k=float(_pop_first(["bin_k"], data, defaults_bin.k)),
        photo_window_radius=int(_pop_first(["bin_photo_radius"], data, defaults_bin.photo_window_radius)),
        photo_max_width=int(_pop_first(["bin_photo_max_width"], data, defaults_bin.photo_max_width)),
    )

    defaults_skew = SkewConfig()
    skew = SkewConfig(
        enabled=_ensure_bool(_pop_first(["deskew", "skew_enabled"], data, defaults_skew.enabled)),
        working_width=int(_pop_first(["skew_working_width"], data, defaults_skew.working_width)),
        max_angle=int(_pop_first(["skew_max_angle"], data, defaults_skew.max_angle)),
        angle_step=float(_pop_first(["skew_angle_step"], data, defaults_skew.angle_step)),
        min_rotation=float(_pop_first(["skew_min_rotation"], data, defaults_skew.min_rotation)),
    )

    defaults_seg = SegmentationConfig()
    segmentation = SegmentationConfig(
        row_threshold_ratio=float(_pop_first(["seg_row_threshold"], data, defaults_seg.row_threshold_ratio)),
        min_line_height=int(_pop_first(["seg_min_line_height"], data, defaults_seg.min_line_height)),
        valley_ratio=float(_pop_first(["seg_valley_ratio"], data, defaults_seg.valley_ratio)),
        min_glyph_ratio=float(_pop_first(["seg_min_glyph_ratio"], data, defaults_seg.min_glyph_ratio)),
        min_glyph_px=int(_pop_first(["seg_min_glyph_px"], data, defaults_seg.min_glyph_px)),
        max_glyph_ratio=float(_pop_first(["seg_max_glyph_ratio"], data, defaults_seg.max_glyph_ratio)),
        min_segment_ratio=float(_pop_first(["seg_min_segment_ratio"], data, defaults_seg.min_segment_ratio)),
        min_segment_px=int(_pop_first(["seg_min_segment_px"], data, defaults_seg.min_segment_px)),
        padding=int(_pop_first(["seg_padding"], data, defaults_seg.padding)),
        refine_min_ratio=float(_pop_first(["seg_refine_min_ratio"], data, defaults_seg.refine_min_ratio)),
        refine_max_ratio=float(_pop_first(["seg_refine_max_ratio"], data, defaults_seg.refine_max_ratio)),
        refine_depth_ratio=float(_pop_first(["seg_refine_depth_ratio"], data, defaults_seg.refine_depth_ratio)),
        refine_peak_ratio=float(_pop_first(["seg_refine_peak_ratio"], data, defaults_seg.refine_peak_ratio)),
    )

    defaults_split = SplitConfig()
    erosion_value = _pop_first(["split_erosion_steps"], data, defaults_split.erosion_steps)
    split = SplitConfig(
        wide_ratio=float(_pop_first(["split_wide_ratio"], data, defaults_split.wide_ratio)),
        min_component_px=int(_pop_first(["split_min_component_px"], data, defaults_split.min_component_px)),
        min_component_fraction=float(_pop_first(["split_min_component_fraction"], data, defaults_split.min_component_fraction)),
        erosion_steps=_ensure_tuple_of_ints(erosion_value),
        whitening_ratio=float(_pop_first(["split_whitening_ratio"], data, defaults_split.whitening_ratio)),
        mass_fraction=float(_pop_first(["split_mass_fraction"], data, defaults_split.mass_fraction)),
        mass_search_radius=int(_pop_first(["split_mass_radius"], data, defaults_split.mass_search_radius)),
        mass_min_width_ratio=float(_pop_first(["split_mass_min_width_ratio"], data, defaults_split.mass_min_width_ratio)),
    )

    defaults_spacing = SpacingConfig()
    spacing = SpacingConfig(
        min_boxes=int(_pop_first(["space_min_boxes"], data, defaults_spacing.min_boxes)),
        min_line_height=int(_pop_first(["space_min_line_height"], data, defaults_spacing.min_line_height)),
        gap_factor=float(_pop_first(["space_gap_factor", "word_gap_factor"], data, defaults_spacing.gap_factor)),
        box_padding=segmentation.padding,
    )

    defaults_norm = NormalizationConfig()
    normalization = NormalizationConfig(
        content_target=int(_pop_first(["norm_content", "content_target"], data, defaults_norm.content_target)),
        trim_ink_factor=float(_pop_first(["norm_trim_ink_factor"], data, defaults_norm.trim_ink_factor)),
        invert=_ensure_bool(_pop_first(["invert", "norm_invert"], data, defaults_norm.invert)),
    )

    weights_value = _pop_first(["rec_weights", "recognizer_weights"], data, None)
    defaults_rec = RecognitionConfig()
    recognition = RecognitionConfig(
        weights_path=_ensure_path(weights_value, base) if weights_value else None,
        device=str(_pop_first(["rec_device", "recognizer_device"], data, defaults_rec.device)),
        charset=str(_pop_first(["rec_charset"], data, defaults_rec.charset)),
        batch_size=int(_pop_first(["rec_batch_size"], data, defaults_rec.batch_size)),
    )

    defaults_dec = DecoderConfig()
    decoder = DecoderConfig(
        vowel_bonus=float(_pop_first(["dec_vowel_bonus"], data, defaults_dec.vowel_bonus)),
        digit_penalty=float(_pop_first(["dec_digit_penalty"], data, defaults_dec.digit_penalty)),
        narrow_max_aspect=float(_pop_first(["dec_narrow_max_aspect"], data, defaults_dec.narrow_max_aspect)),
        round_margin=float(_pop_first(["dec_round_margin"], data, defaults_dec.round_margin)),
    )

    if seed_value is not None:
        set_global_seed(int(seed_value))

    return PipelineConfig(
        output_root=output_root,
        seed=int(seed_value) if seed_value is not None else None,
        binarization=binarization,
        skew=skew,
        segmentation=segmentation,
        split=split,
        spacing=spacing,
        normalization=normalization,
        recognition=recognition,
        decoder=decoder,
    )
