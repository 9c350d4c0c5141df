"""
textembed -- root package.

Fast, batched text embeddings for retrieval, running pre-exported ONNX
encoders on OpenVINO:
    embeddings    -> TextEmbedding pipeline, model registry, normalisation
    tokenization  -> build a configured tokenizer from HuggingFace files
    hub           -> fetch and cache model files from the HuggingFace Hub
    openvino      -> compile networks and select inference devices
"""

from textembed.embeddings import (
    DEFAULT_BATCH_SIZE,
    EmbeddingModel,
    InitOptions,
    InitOptionsUserDefined,
    ModelInfo,
    TextEmbedding,
    UserDefinedEmbeddingModel,
)
from textembed.errors import (
    DataFormatError,
    EncodingError,
    EngineBuildError,
    InferenceRuntimeError,
    ModelNotFoundError,
    RepositoryError,
    TensorShapeError,
    TextEmbedError,
)
from textembed.hub.repository import read_file_to_bytes
from textembed.tokenization import TokenizerFiles

__version__ = "0.1.0"
__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DataFormatError",
    "EmbeddingModel",
    "EncodingError",
    "EngineBuildError",
    "InferenceRuntimeError",
    "InitOptions",
    "InitOptionsUserDefined",
    "ModelInfo",
    "ModelNotFoundError",
    "RepositoryError",
    "TensorShapeError",
    "TextEmbedError",
    "TextEmbedding",
    "TokenizerFiles",
    "UserDefinedEmbeddingModel",
    "read_file_to_bytes",
]
