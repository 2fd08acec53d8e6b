import numpy as np

from glyphseg import GlyphPipeline, PipelineConfig, render_text_line
from glyphseg.config import SkewConfig

from conftest import BLOCK_STARTS


class AlternatingClassifier:
    """Predicts A, B, A, B, ... with full confidence."""

    charset = "AB"

    def __init__(self):
        self.batches = []

    def predict_proba(self, batch):
        self.batches.append(batch)
        probs = np.zeros((batch.shape[0], 2), dtype=np.float32)
        probs[np.arange(batch.shape[0]), np.arange(batch.shape[0]) % 2] = 1.0
        return probs


def test_three_words_segment_into_glyphs_and_spaces(block_line):
    result = GlyphPipeline().run(block_line)

    assert result.angle == 0.0
    assert len(result.glyph_boxes) == len(BLOCK_STARTS) == 13
    assert [idx for idx, box in enumerate(result.boxes) if box.is_space] == [5, 11]
    assert result.glyphs.shape == (13, 28, 28)
    assert result.text is None
    assert result.predictions == []

    batch = result.batch()
    assert batch.shape == (13, 784)
    assert batch.dtype == np.float32
    assert batch.flags["C_CONTIGUOUS"]


def test_classifier_output_is_decoded_in_reading_order(block_line):
    classifier = AlternatingClassifier()
    config = PipelineConfig(skew=SkewConfig(enabled=False))

    result = GlyphPipeline(config, classifier=classifier).run(block_line)

    assert result.text == "ABABA BABAB ABA"
    assert len(result.predictions) == 13
    assert classifier.batches[0].shape == (13, 784)


def test_blank_page_gives_empty_text():
    blank = np.full((80, 120, 3), 255, dtype=np.uint8)

    result = GlyphPipeline(classifier=AlternatingClassifier()).run(blank)

    assert result.boxes == []
    assert result.glyphs.shape == (0, 28, 28)
    assert result.text == ""


def _layout(boxes):
    return "".join(" " if box.is_space else "#" for box in boxes)


def test_rendered_words_keep_their_spaces():
    result = GlyphPipeline().run(render_text_line("HELLO WORLD 123"), window_radius=10)

    assert _layout(result.boxes) == "##### ##### ###"
    assert result.glyphs.shape == (13, 28, 28)
