import numpy as np
import pytest
import torch

from glyphseg.config import RecognitionConfig
from glyphseg.recognition import CharacterCNN, CharacterRecognizer


@pytest.fixture
def model():
    torch.manual_seed(0)
    return CharacterCNN(36)


def test_cnn_output_shape(model):
    logits = model(torch.zeros(2, 1, 28, 28))

    assert logits.shape == (2, 36)


def test_predict_proba_returns_distributions(model):
    recognizer = CharacterRecognizer(RecognitionConfig(device="cpu", batch_size=2), model=model)
    batch = np.random.default_rng(0).random((5, 784), dtype=np.float32)

    probs = recognizer.predict_proba(batch)

    assert probs.shape == (5, 36)
    assert np.allclose(probs.sum(axis=1), 1.0, atol=1e-5)
    assert np.allclose(recognizer.predict_proba(batch.reshape(5, 28, 28)), probs, atol=1e-6)


def test_empty_batch(model):
    recognizer = CharacterRecognizer(RecognitionConfig(device="cpu"), model=model)

    assert recognizer.predict_proba(np.zeros((0, 784), dtype=np.float32)).shape == (0, 36)


def test_missing_weights_raise(tmp_path):
    with pytest.raises(FileNotFoundError):
        CharacterRecognizer(RecognitionConfig(device="cpu"))
    with pytest.raises(FileNotFoundError):
        CharacterRecognizer(RecognitionConfig(weights_path=tmp_path / "missing.pt", device="cpu"))


def test_loads_checkpoint_with_state_dict_key(tmp_path, model):
    path = tmp_path / "cnn.pt"
    torch.save({"model_state_dict": model.state_dict()}, path)
    batch = np.zeros((1, 784), dtype=np.float32)

    loaded = CharacterRecognizer(RecognitionConfig(weights_path=path, device="cpu"))
    direct = CharacterRecognizer(RecognitionConfig(device="cpu"), model=model)

    assert np.allclose(loaded.predict_proba(batch), direct.predict_proba(batch), atol=1e-6)
