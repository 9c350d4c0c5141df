"""
Supported Embedding Models
===========================
Static registry of the pre-exported ONNX embedding models that
``TextEmbedding.try_new`` knows how to download and run.

Each entry is a frozen ``ModelInfo``:
    model            -- the ``EmbeddingModel`` member used as the lookup key
    dim              -- hidden size, i.e. the length of every embedding
    description      -- one-line summary shown by ``cli.py models``
    model_code       -- HuggingFace Hub repository id
    model_file       -- ONNX weights path inside the repository
    additional_files -- side-files that must sit next to the weights
                        (external-data blobs for models over 2 GB)
    max_length       -- max sequence length declared by the model config

The registry is a read-only mapping built once at import time.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Tuple, Union

from textembed.errors import ModelNotFoundError


class EmbeddingModel(Enum):
    """Identifiers of the supported embedding models."""

    AllMiniLML6V2 = "AllMiniLML6V2"
    BGEBaseENV15 = "BGEBaseENV15"
    BGESmallENV15 = "BGESmallENV15"
    BGELargeENV15 = "BGELargeENV15"
    BGESmallZHV15 = "BGESmallZHV15"
    NomicEmbedTextV1 = "NomicEmbedTextV1"
    NomicEmbedTextV15 = "NomicEmbedTextV15"
    ParaphraseMLMiniLML12V2 = "ParaphraseMLMiniLML12V2"
    MultilingualE5Small = "MultilingualE5Small"
    MultilingualE5Base = "MultilingualE5Base"
    MultilingualE5Large = "MultilingualE5Large"
    MxbaiEmbedLargeV1 = "MxbaiEmbedLargeV1"

    def __str__(self) -> str:
        return get_model_info(self).model_code


@dataclass(frozen=True)
class ModelInfo:
    model: EmbeddingModel
    dim: int
    description: str
    model_code: str
    model_file: str
    additional_files: Tuple[str, ...] = ()
    # Advertised context size, shown by `textembed models`. Truncation is
    # driven by tokenizer_config.json, not by this field.
    max_length: int = 512


_MODELS = (
    ModelInfo(
        model=EmbeddingModel.AllMiniLML6V2,
        dim=384,
        description="Sentence Transformer model, MiniLM-L6-v2",
        model_code="Qdrant/all-MiniLM-L6-v2-onnx",
        model_file="model.onnx",
    ),
    ModelInfo(
        model=EmbeddingModel.BGEBaseENV15,
        dim=768,
        description="v1.5 release of the base English model",
        model_code="Xenova/bge-base-en-v1.5",
        model_file="onnx/model.onnx",
    ),
    ModelInfo(
        model=EmbeddingModel.BGESmallENV15,
        dim=384,
        description="v1.5 release of the fast and default English model",
        model_code="Xenova/bge-small-en-v1.5",
        model_file="onnx/model.onnx",
    ),
    ModelInfo(
        model=EmbeddingModel.BGELargeENV15,
        dim=1024,
        description="v1.5 release of the large English model",
        model_code="Xenova/bge-large-en-v1.5",
        model_file="onnx/model.onnx",
    ),
    ModelInfo(
        model=EmbeddingModel.BGESmallZHV15,
        dim=512,
        description="v1.5 release of the small Chinese model",
        model_code="Xenova/bge-small-zh-v1.5",
        model_file="onnx/model.onnx",
    ),
    ModelInfo(
        model=EmbeddingModel.NomicEmbedTextV1,
        dim=768,
        description="8192 context length english model",
        model_code="nomic-ai/nomic-embed-text-v1",
        model_file="onnx/model.onnx",
        max_length=8192,
    ),
    ModelInfo(
        model=EmbeddingModel.NomicEmbedTextV15,
        dim=768,
        description="v1.5 release of the 8192 context length english model",
        model_code="nomic-ai/nomic-embed-text-v1.5",
        model_file="onnx/model.onnx",
        max_length=8192,
    ),
    ModelInfo(
        model=EmbeddingModel.ParaphraseMLMiniLML12V2,
        dim=384,
        description="Multi-lingual model",
        model_code="Xenova/paraphrase-multilingual-MiniLM-L12-v2",
        model_file="onnx/model.onnx",
    ),
    ModelInfo(
        model=EmbeddingModel.MultilingualE5Small,
        dim=384,
        description="Small model of multilingual E5 Text Embeddings",
        model_code="intfloat/multilingual-e5-small",
        model_file="onnx/model.onnx",
    ),
    ModelInfo(
        model=EmbeddingModel.MultilingualE5Base,
        dim=768,
        description="Base model of multilingual E5 Text Embeddings",
        model_code="intfloat/multilingual-e5-base",
        model_file="onnx/model.onnx",
    ),
    ModelInfo(
        model=EmbeddingModel.MultilingualE5Large,
        dim=1024,
        description="Large model of multilingual E5 Text Embeddings",
        model_code="Qdrant/multilingual-e5-large-onnx",
        model_file="model.onnx",
        additional_files=("model.onnx_data",),
    ),
    ModelInfo(
        model=EmbeddingModel.MxbaiEmbedLargeV1,
        dim=1024,
        description="Large English embedding model from MixedBreed.ai",
        model_code="mixedbread-ai/mxbai-embed-large-v1",
        model_file="onnx/model.onnx",
    ),
)

MODEL_REGISTRY: Mapping[EmbeddingModel, ModelInfo] = MappingProxyType(
    {info.model: info for info in _MODELS}
)


def models_list() -> List[ModelInfo]:
    """Return every supported model, in registry order."""
    return list(MODEL_REGISTRY.values())


def get_model_info(model: EmbeddingModel) -> ModelInfo:
    """Look up the descriptor of ``model``; raises ``ModelNotFoundError``."""
    try:
        return MODEL_REGISTRY[model]
    except KeyError:
        raise ModelNotFoundError(model) from None


def parse_model(name: Union[str, EmbeddingModel]) -> EmbeddingModel:
    """
    Resolve a model from its enum name or its repository id.

    Accepts ``"BGESmallENV15"`` as well as ``"Xenova/bge-small-en-v1.5"``
    (case-insensitive), which is what settings files and the CLI pass in.
    """
    if isinstance(name, EmbeddingModel):
        return name
    wanted = name.strip().lower()
    for info in MODEL_REGISTRY.values():
        if wanted in (info.model.value.lower(), info.model_code.lower()):
            return info.model
    raise ModelNotFoundError(name)
