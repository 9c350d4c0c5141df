"""
Embeddings subpackage -- text-to-vector encoding.

    TextEmbedding  -- batched tokenize -> infer -> pool -> normalise pipeline
    EmbeddingModel -- identifiers of the supported models
    normalize      -- L2 normalisation with a zero-safe epsilon
"""

from textembed.embeddings.models import EmbeddingModel, ModelInfo
from textembed.embeddings.normalize import normalize
from textembed.embeddings.text_embedding import (
    DEFAULT_BATCH_SIZE,
    InitOptions,
    InitOptionsUserDefined,
    TextEmbedding,
    UserDefinedEmbeddingModel,
)
