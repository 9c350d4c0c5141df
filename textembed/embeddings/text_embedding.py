"""
Text Embedding
===============
Turns a list of strings into L2-normalised embedding vectors with a
pre-exported ONNX encoder running on OpenVINO.

Construction (once):
    - ``try_new``: look the model up in the registry, pull its files from
      the HuggingFace Hub cache, compile the network, build the tokenizer.
    - ``try_new_from_user_defined``: same, from bytes supplied by the caller.

Embedding (per call), for every batch of at most ``batch_size`` texts:
    1. **Tokenize** the whole batch at once; padding goes to the longest
       sequence in that batch, truncation to the effective max length.
    2. **Assemble** int64 tensors of shape (batch, seq_len):
       input_ids, attention_mask and, when the network declares it,
       token_type_ids.
    3. **Infer** on the shared compiled model.
    4. **Pool**: take the hidden state of the first token of every
       sequence from ``last_hidden_state`` (batch, seq_len, dim).
    5. **L2-normalise** each pooled vector.

Batches run in parallel on a thread pool and are collected in input order,
so ``embed(texts)[i]`` always belongs to ``texts[i]``.  Any failing batch
aborts the whole call.

Usage:
    model = TextEmbedding.try_new()
    vectors = model.embed(["passage: Hello, World!", "query: Hello, World!"])
    # len(vectors) == 2, vectors[0].shape == (384,), dtype float32
"""

import itertools
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np

from textembed.embeddings.models import (
    EmbeddingModel,
    ModelInfo,
    get_model_info,
    models_list,
)
from textembed.embeddings.normalize import normalize
from textembed.errors import (
    EncodingError,
    InferenceRuntimeError,
    TensorShapeError,
)
from textembed.hub.repository import resolve_model_files, retrieve_model
from textembed.openvino.session import InferenceSession
from textembed.tokenization.loader import (
    TokenizerFiles,
    load_tokenizer,
    load_tokenizer_hf_hub,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 256
DEFAULT_MAX_LENGTH = 512
DEFAULT_CACHE_DIR = ".textembed_cache"
DEFAULT_EMBEDDING_MODEL = EmbeddingModel.BGESmallENV15

OUTPUT_NAME = "last_hidden_state"


@dataclass
class InitOptions:
    """Options for ``TextEmbedding.try_new``."""

    model_name: EmbeddingModel = DEFAULT_EMBEDDING_MODEL
    execution_providers: List[str] = field(default_factory=list)
    max_length: int = DEFAULT_MAX_LENGTH
    cache_dir: Union[str, Path] = DEFAULT_CACHE_DIR
    show_download_progress: bool = True


@dataclass
class InitOptionsUserDefined:
    """Options for ``TextEmbedding.try_new_from_user_defined``."""

    execution_providers: List[str] = field(default_factory=list)
    max_length: int = DEFAULT_MAX_LENGTH

    @classmethod
    def from_init_options(cls, options: InitOptions) -> "InitOptionsUserDefined":
        """Reuse the engine and tokenizer settings of an ``InitOptions``."""
        return cls(
            execution_providers=list(options.execution_providers),
            max_length=options.max_length,
        )


@dataclass(frozen=True)
class UserDefinedEmbeddingModel:
    """A "bring your own" model: ONNX bytes plus its tokenizer files."""

    onnx_file: bytes
    tokenizer_files: TokenizerFiles


class TextEmbedding:
    """
    Batched text embedding on a compiled OpenVINO network.

    Args:
        tokenizer   : configured ``tokenizers.Tokenizer``
        session     : object with ``input_names`` and ``run(inputs)``,
                      normally an ``InferenceSession``
        num_workers : batch worker threads; defaults to the CPU count
    """

    def __init__(self, tokenizer, session, num_workers: Optional[int] = None):
        self.tokenizer = tokenizer
        self.session = session
        self.need_token_type_ids = "token_type_ids" in session.input_names
        self.num_workers = num_workers or os.cpu_count() or 1

    @classmethod
    def try_new(cls, options: Optional[InitOptions] = None) -> "TextEmbedding":
        """
        Download (or reuse from cache) a supported model and load it.

        Uses one intra-op thread per logical CPU.

        Raises:
            ModelNotFoundError, RepositoryError, DataFormatError,
            EngineBuildError
        """
        options = options or InitOptions()
        threads = os.cpu_count() or 1
        model_info = cls.get_model_info(options.model_name)
        logger.info("Loading embedding model: %s", model_info.model_code)

        repo = retrieve_model(
            model_info.model, options.cache_dir, options.show_download_progress
        )
        model_path = resolve_model_files(model_info, repo)
        session = InferenceSession.from_file(
            model_path, options.execution_providers, threads
        )
        tokenizer = load_tokenizer_hf_hub(repo, options.max_length)
        return cls(tokenizer, session, num_workers=threads)

    @classmethod
    def try_new_from_user_defined(
        cls,
        model: UserDefinedEmbeddingModel,
        options: Optional[InitOptionsUserDefined] = None,
    ) -> "TextEmbedding":
        """
        Load a model from bytes supplied by the caller.

        Raises:
            DataFormatError, EngineBuildError
        """
        options = options or InitOptionsUserDefined()
        threads = os.cpu_count() or 1
        session = InferenceSession.from_memory(
            model.onnx_file, options.execution_providers, threads
        )
        tokenizer = load_tokenizer(model.tokenizer_files, options.max_length)
        return cls(tokenizer, session, num_workers=threads)

    @staticmethod
    def list_supported_models() -> List[ModelInfo]:
        return models_list()

    @staticmethod
    def get_model_info(model: EmbeddingModel) -> ModelInfo:
        return get_model_info(model)

    def embed(
        self, texts: Sequence[str], batch_size: Optional[int] = None
    ) -> List[np.ndarray]:
        """
        Embed ``texts``, one float32 vector per text, in input order.

        Args:
            texts      : strings to embed
            batch_size : texts per inference call (default 256)

        Raises:
            EncodingError, TensorShapeError, InferenceRuntimeError
        """
        batch_size = DEFAULT_BATCH_SIZE if batch_size is None else batch_size
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        texts = list(texts)
        if not texts:
            return []
        batches = [
            texts[start:start + batch_size]
            for start in range(0, len(texts), batch_size)
        ]

        if len(batches) == 1:
            results = [self._embed_batch(0, batches[0])]
        else:
            executor = ThreadPoolExecutor(
                max_workers=min(self.num_workers, len(batches))
            )
            try:
                results = list(
                    executor.map(self._embed_batch, range(len(batches)), batches)
                )
            finally:
                executor.shutdown(wait=True, cancel_futures=True)

        embeddings = list(itertools.chain.from_iterable(results))
        logger.debug(
            "Embedded %d texts in %d batch(es)", len(embeddings), len(batches)
        )
        return embeddings

    def _embed_batch(self, batch_index: int, batch: List[str]) -> List[np.ndarray]:
        try:
            encodings = self.tokenizer.encode_batch(batch, add_special_tokens=True)
        except Exception as exc:  # tokenizers raises a bare Exception
            raise EncodingError(batch_index, f"tokenization failed: {exc}") from exc

        rows = len(batch)
        if len(encodings) != rows:
            raise TensorShapeError(
                batch_index, f"tokenizer returned {len(encodings)} encodings for {rows} texts"
            )
        seq_len = len(encodings[0].ids)

        inputs = {
            "input_ids": _as_tensor(
                [e.ids for e in encodings], rows, seq_len, "input_ids", batch_index
            ),
            "attention_mask": _as_tensor(
                [e.attention_mask for e in encodings],
                rows,
                seq_len,
                "attention_mask",
                batch_index,
            ),
        }
        if self.need_token_type_ids:
            inputs["token_type_ids"] = _as_tensor(
                [e.type_ids for e in encodings],
                rows,
                seq_len,
                "token_type_ids",
                batch_index,
            )

        try:
            outputs = self.session.run(inputs)
        except Exception as exc:
            raise InferenceRuntimeError(batch_index, f"inference failed: {exc}") from exc

        hidden = outputs.get(OUTPUT_NAME)
        if hidden is None:
            raise TensorShapeError(batch_index, f"model produced no '{OUTPUT_NAME}' output")
        hidden = np.asarray(hidden, dtype=np.float32)
        if hidden.ndim != 3 or hidden.shape[:2] != (rows, seq_len):
            raise TensorShapeError(
                batch_index,
                f"'{OUTPUT_NAME}' has shape {hidden.shape}, "
                f"expected ({rows}, {seq_len}, dim)",
            )

        return [normalize(row) for row in hidden[:, 0, :]]


def _as_tensor(
    sequences: List[List[int]], rows: int, seq_len: int, name: str, batch_index: int
) -> np.ndarray:
    """Flatten per-sequence ids row-major into an int64 (rows, seq_len) tensor."""
    flat = np.fromiter(itertools.chain.from_iterable(sequences), dtype=np.int64)
    if flat.size != rows * seq_len:
        raise TensorShapeError(
            batch_index,
            f"{name} holds {flat.size} values, expected {rows} x {seq_len}",
        )
    return flat.reshape(rows, seq_len)
