import numpy as np
import pytest

from glyphseg.config import DecoderConfig, RecognitionConfig
from glyphseg.recognition import TextDecoder
from glyphseg.utils import Box

CHARSET = RecognitionConfig().charset
NARROW = Box(0, 0, 10, 20)
SQUARE = Box(0, 0, 20, 20)


def _row(**probs):
    row = np.zeros(len(CHARSET), dtype=np.float32)
    for char, value in probs.items():
        row[CHARSET.index(char.lstrip("_"))] = value
    return row


@pytest.fixture
def decoder():
    return TextDecoder(CHARSET, DecoderConfig())


def test_sentinels_become_spaces(decoder):
    boxes = [NARROW, Box.space(12, 0, 20), NARROW]
    probs = np.stack([_row(H=1.0), _row(I=1.0)])

    text, predictions = decoder.decode(boxes, probs)

    assert text == "H I"
    assert [p.character for p in predictions] == ["H", "I"]
    assert predictions[0].confidence == pytest.approx(1.0)


def test_vowel_after_consonant_gets_bonus(decoder):
    text, _ = decoder.decode([NARROW, NARROW], np.stack([_row(B=1.0), _row(A=0.50, B=0.51)]))
    assert text == "BA"

    text, _ = decoder.decode([NARROW], np.stack([_row(A=0.50, B=0.51)]))
    assert text == "B"


def test_digit_after_digit_is_penalised(decoder):
    text, predictions = decoder.decode([NARROW, NARROW], np.stack([_row(_7=1.0), _row(_7=0.50, A=0.49)]))

    assert text == "7A"
    assert predictions[1].confidence == pytest.approx(0.49)


def test_wide_box_rejects_narrow_glyph(decoder):
    wide = Box(0, 0, 16, 20)

    text, _ = decoder.decode([wide], np.stack([_row(I=0.6, L=0.3)]))
    assert text == "L"

    text, _ = decoder.decode([NARROW], np.stack([_row(I=0.6, L=0.3)]))
    assert text == "I"


def test_round_glyph_prefers_letter_when_ambiguous(decoder):
    text, _ = decoder.decode([SQUARE], np.stack([_row(_0=0.50, O=0.47)]))
    assert text == "O"

    text, _ = decoder.decode([SQUARE], np.stack([_row(_0=0.55, O=0.45)]))
    assert text == "0"

    text, _ = decoder.decode([SQUARE], np.stack([_row(K=0.9)]))
    assert text == "K"


def test_probability_count_must_match_glyphs(decoder):
    with pytest.raises(ValueError):
        decoder.decode([NARROW, NARROW], np.stack([_row(A=1.0)]))


def test_only_spaces_decode_without_probabilities(decoder):
    text, predictions = decoder.decode([Box.space(0, 0, 10)], np.zeros((0, len(CHARSET))))

    assert text == " "
    assert predictions == []
