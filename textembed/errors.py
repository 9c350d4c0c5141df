"""
Error Types
============
Every failure raised by the embedding pipeline derives from
``TextEmbedError`` so callers can catch the whole family in one place,
or a single kind when they need to react differently.

Construction-time errors:
    RepositoryError   -- a required file is missing or unreachable
    DataFormatError   -- a config / tokenizer buffer is malformed
    EngineBuildError  -- OpenVINO could not read or compile the network

Embed-time errors (abort the whole ``embed`` call):
    EncodingError          -- the tokenizer rejected a batch
    TensorShapeError       -- token or output tensors have the wrong shape
    InferenceRuntimeError  -- the compiled model failed during inference

There are no retries anywhere: each error carries the file, field or batch
that failed and is raised with the underlying exception chained.
"""

from typing import Optional


class TextEmbedError(Exception):
    """Base class for all textembed errors."""


class ModelNotFoundError(TextEmbedError, KeyError):
    """The requested model is not in the supported-model registry."""

    def __init__(self, model: object):
        self.model = model
        super().__init__(f"Model not found: {model!r}")

    def __str__(self) -> str:
        return self.args[0]


class RepositoryError(TextEmbedError):
    """A required file could not be fetched from the model repository."""

    def __init__(self, repo_id: str, filename: str, reason: str = ""):
        self.repo_id = repo_id
        self.filename = filename
        message = f"Failed to retrieve '{filename}' from '{repo_id}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class DataFormatError(TextEmbedError):
    """A configuration or tokenizer buffer is malformed or missing a field."""

    def __init__(self, filename: str, message: str, field: Optional[str] = None):
        self.filename = filename
        self.field = field
        location = f"{filename}[{field!r}]" if field else filename
        super().__init__(f"Invalid {location}: {message}")


class EngineBuildError(TextEmbedError):
    """OpenVINO failed to load, convert or compile the network."""

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        message = f"Failed to build inference session from {source}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class BatchError(TextEmbedError):
    """Base class for failures tied to a single batch of ``embed``."""

    def __init__(self, batch_index: int, message: str):
        self.batch_index = batch_index
        super().__init__(f"Batch {batch_index}: {message}")


class EncodingError(BatchError):
    """The tokenizer failed to encode a batch."""


class TensorShapeError(BatchError):
    """An input or output tensor does not have the expected shape."""


class InferenceRuntimeError(BatchError):
    """The compiled model raised while running a batch."""
