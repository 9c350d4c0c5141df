import json
import threading

import numpy as np
import pytest
from tokenizers import Tokenizer, models, normalizers, pre_tokenizers, processors

from textembed.tokenization.loader import TokenizerFiles

VOCAB = {
    "[PAD]": 0,
    "[UNK]": 1,
    "[CLS]": 2,
    "[SEP]": 3,
    "hello": 4,
    "world": 5,
    "passage": 6,
    "query": 7,
    ":": 8,
    ",": 9,
    "!": 10,
    "a": 11,
    "b": 12,
    "c": 13,
    "d": 14,
    "e": 15,
}

SPECIAL_TOKENS_MAP = {
    "cls_token": "[CLS]",
    "sep_token": "[SEP]",
    "unk_token": "[UNK]",
    "pad_token": {
        "content": "[PAD]",
        "single_word": False,
        "lstrip": False,
        "rstrip": False,
        "normalized": False,
    },
}


def build_tokenizer_json() -> str:
    """A small lower-casing WordLevel tokenizer with BERT-style specials."""
    tokenizer = Tokenizer(models.WordLevel(vocab=VOCAB, unk_token="[UNK]"))
    tokenizer.normalizer = normalizers.Lowercase()
    tokenizer.pre_tokenizer = pre_tokenizers.Whitespace()
    tokenizer.post_processor = processors.TemplateProcessing(
        single="[CLS] $A [SEP]",
        pair="[CLS] $A [SEP] $B:1 [SEP]:1",
        special_tokens=[("[CLS]", 2), ("[SEP]", 3)],
    )
    return tokenizer.to_str()


def make_tokenizer_files(
    config=None,
    special_tokens_map=None,
    tokenizer_config=None,
    tokenizer_json=None,
) -> TokenizerFiles:
    if config is None:
        config = {"pad_token_id": 0}
    if special_tokens_map is None:
        special_tokens_map = SPECIAL_TOKENS_MAP
    if tokenizer_config is None:
        tokenizer_config = {"pad_token": "[PAD]", "model_max_length": 512}
    if tokenizer_json is None:
        tokenizer_json = build_tokenizer_json()

    def dump(value):
        return value if isinstance(value, bytes) else json.dumps(value).encode("utf-8")

    return TokenizerFiles(
        tokenizer_file=tokenizer_json.encode("utf-8"),
        config_file=dump(config),
        special_tokens_map_file=dump(special_tokens_map),
        tokenizer_config_file=dump(tokenizer_config),
    )


class FakeSession:
    """
    Stand-in for ``InferenceSession``.

    The position-0 hidden state of each row is a deterministic function of
    that row's unpadded token ids, so it does not depend on how texts are
    batched.  Every other position holds large noise that would show up if
    the pipeline pooled anything but position 0.
    """

    def __init__(self, input_names=("input_ids", "attention_mask"), dim=8, scale=1.0):
        self.input_names = list(input_names)
        self.dim = dim
        self.scale = scale
        self.calls = []
        self._lock = threading.Lock()

    def run(self, inputs):
        with self._lock:
            self.calls.append(dict(inputs))
        ids = inputs["input_ids"]
        mask = inputs["attention_mask"]
        rows, seq_len = ids.shape
        hidden = np.full((rows, seq_len, self.dim), 1000.0, dtype=np.float32)
        weights = np.arange(1, self.dim + 1, dtype=np.float64)
        for r in range(rows):
            vec = np.ones(self.dim, dtype=np.float64)
            for j in range(seq_len):
                vec += mask[r, j] * ids[r, j] * np.cos(weights * (j + 1))
            hidden[r, 0, :] = (vec * self.scale).astype(np.float32)
        return {"last_hidden_state": hidden}


@pytest.fixture
def tokenizer_json():
    return build_tokenizer_json()


@pytest.fixture
def tokenizer_files():
    return make_tokenizer_files()


@pytest.fixture
def fake_session():
    return FakeSession()
