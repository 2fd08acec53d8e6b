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

"""Run the full pipeline: segmentation, classification and decoding."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from glyphseg import GlyphPipeline, load_config_overrides_from_file, load_pipeline_config
from glyphseg.io_utils import collect_images, ensure_dir, load_image, save_text, shrink_to_width
from glyphseg.logger import setup_logger
from glyphseg.recognition import CharacterRecognizer

logger = logging.getLogger("glyphseg.recognize_text")


def run_recognition(
    input_path: Union[str, Path],
    config: Optional[Mapping[str, object]] = None,
) -> Dict[str, str]:
    """Recognise the text in every image under ``input_path``.

    Requires ``rec_weights`` in ``config``. One ``<stem>.txt`` is written per
    image under ``<output_root>/text``.

    Returns:
        Dictionary mapping image names to recognised text
    """
    overrides = dict(config or {})
    pipeline_cfg = load_pipeline_config(overrides, base_path=Path.cwd())
    output_dir = ensure_dir(pipeline_cfg.output_dir("text"))

    recognizer = CharacterRecognizer(pipeline_cfg.recognition)
    pipeline = GlyphPipeline(pipeline_cfg, classifier=recognizer)

    results: Dict[str, str] = {}
    for image_path in collect_images(Path(input_path)):
        image = shrink_to_width(load_image(image_path), pipeline_cfg.binarization.photo_max_width)
        result = pipeline.run(image, window_radius=pipeline_cfg.binarization.photo_window_radius)
        text = result.text or ""
        save_text(output_dir / f"{image_path.stem}.txt", text + "\n")
        results[image_path.name] = text
    return results


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(description="Recognise text in document images")
    parser.add_argument("input", type=str, help="Image file or directory of images")
    parser.add_argument("--weights", type=str, default=None, help="Classifier state dict (overrides rec_weights)")
    parser.add_argument("--config", type=str, default=None, help="Optional config overrides file")
    parser.add_argument("--log-dir", type=str, default=None, help="Also write logs to this directory")
    args = parser.parse_args()

    setup_logger(args.log_dir)
    overrides: Dict[str, object] = {}
    if args.config:
        try:
            overrides.update(load_config_overrides_from_file(args.config))
        except FileNotFoundError:
            logger.error("Config overrides not found: %s", args.config)
        except ValueError as exc:
            logger.error("Failed to parse overrides %s: %s", args.config, exc)
    if args.weights:
        overrides["rec_weights"] = args.weights

    summary = run_recognition(args.input, overrides)
    for name, text in summary.items():
        logger.info("%s: %s", name, text)


if __name__ == "__main__":
    main()
