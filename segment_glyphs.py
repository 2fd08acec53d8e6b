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

"""Segment document images (or rendered text) into normalised 28x28 glyphs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from glyphseg import GlyphPipeline, load_config_overrides_from_file, load_pipeline_config, render_text_line
from glyphseg.io_utils import (
    collect_images,
    ensure_dir,
    load_image,
    save_boxes,
    save_glyph,
    save_image,
    shrink_to_width,
)
from glyphseg.logger import setup_logger

logger = logging.getLogger("glyphseg.segment_glyphs")


def _format_index(index: int) -> str:
    return f"g{index:03d}.png"


def _write_result(subdir: Path, result) -> List[str]:
    for obsolete in subdir.glob("g*.png"):
        obsolete.unlink()
    save_boxes(subdir / "boxes.txt", result.boxes)
    filenames: List[str] = []
    for idx, glyph in enumerate(result.glyphs, start=1):
        filename = _format_index(idx)
        save_glyph(subdir / filename, glyph)
        filenames.append(filename)
    return filenames


def run_segmentation(
    input_path: Optional[Union[str, Path]] = None,
    config: Optional[Mapping[str, object]] = None,
    text: Optional[str] = None,
) -> Dict[str, List[str]]:
    """Segment every image under ``input_path`` (or a rendered ``text``).

    Each input gets a sub-directory of the output root holding one PNG per
    glyph (``g001.png`` ...) in reading order plus ``boxes.txt`` with every box,
    space sentinels included.

    Returns:
        Dictionary mapping input names to the saved glyph filenames
    """
    overrides = dict(config or {})
    pipeline_cfg = load_pipeline_config(overrides, base_path=Path.cwd())
    output_dir = ensure_dir(pipeline_cfg.output_dir("glyphs"))
    pipeline = GlyphPipeline(pipeline_cfg)
    results: Dict[str, List[str]] = {}

    if text is not None:
        image = render_text_line(text)
        subdir = ensure_dir(output_dir / "rendered")
        save_image(subdir / "source.png", image)
        result = pipeline.run(image, window_radius=pipeline_cfg.binarization.window_radius)
        results["rendered"] = _write_result(subdir, result)
        return results

    if input_path is None:
        raise ValueError("Either an input path or text is required")

    for image_path in collect_images(Path(input_path)):
        image = shrink_to_width(load_image(image_path), pipeline_cfg.binarization.photo_max_width)
        result = pipeline.run(image, window_radius=pipeline_cfg.binarization.photo_window_radius)
        subdir = ensure_dir(output_dir / image_path.stem)
        results[image_path.name] = _write_result(subdir, result)
    return results


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(description="Segment document images into normalised glyphs")
    parser.add_argument("input", type=str, nargs="?", default=None, help="Image file or directory of images")
    parser.add_argument("--text", type=str, default=None, help="Render and segment this text instead")
    parser.add_argument("--config", type=str, default=None, help="Optional config overrides file")
    parser.add_argument("--log-dir", type=str, default=None, help="Also write logs to this directory")
    args = parser.parse_args()

    setup_logger(args.log_dir)
    if args.input is None and args.text is None:
        parser.error("provide an input path or --text")

    overrides = None
    if args.config:
        try:
            overrides = load_config_overrides_from_file(args.config)
        except FileNotFoundError:
            logger.error("Config overrides not found: %s", args.config)
        except ValueError as exc:
            logger.error("Failed to parse overrides %s: %s", args.config, exc)

    summary = run_segmentation(args.input, overrides, text=args.text)
    for name, files in summary.items():
        logger.info("%s: %d glyphs", name, len(files))


if __name__ == "__main__":
    main()
