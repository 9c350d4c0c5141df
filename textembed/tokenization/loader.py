"""
Tokenizer Loader
=================
Builds a ready-to-use ``tokenizers.Tokenizer`` from the four JSON files
that ship with every HuggingFace model export:

    tokenizer.json           -- the tokenizer definition (vocab, model, ...)
    config.json              -- model config, source of ``pad_token_id``
    special_tokens_map.json  -- special tokens to register
    tokenizer_config.json    -- ``pad_token`` and ``model_max_length``

The files arrive as raw bytes so the same code serves models pulled from
the Hub and "bring your own" models held in memory.

Field rules:
    pad_token_id      -- optional, defaults to 0 unless a non-negative int
    pad_token         -- required string
    model_max_length  -- required finite number; may be a huge sentinel
                         such as 1e30 meaning "unbounded"
    special tokens    -- string entries use default attributes
                         (normalized, not single-word, no stripping); object
                         entries must carry every attribute explicitly

Padding pads each batch to its own longest sequence.  Truncation caps
sequences at min(requested max_length, model_max_length).
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List

from tokenizers import AddedToken, Tokenizer

from textembed.errors import DataFormatError
from textembed.hub.repository import read_file_to_bytes

logger = logging.getLogger(__name__)

TOKENIZER_FILE = "tokenizer.json"
CONFIG_FILE = "config.json"
SPECIAL_TOKENS_MAP_FILE = "special_tokens_map.json"
TOKENIZER_CONFIG_FILE = "tokenizer_config.json"

# Attributes an object-form special token must declare.
SPECIAL_TOKEN_FLAGS = ("single_word", "lstrip", "rstrip", "normalized")


@dataclass(frozen=True)
class TokenizerFiles:
    """Raw bytes of the tokenizer-related files of a model."""

    tokenizer_file: bytes
    config_file: bytes
    special_tokens_map_file: bytes
    tokenizer_config_file: bytes


def _parse_json_object(data: bytes, filename: str) -> Dict[str, Any]:
    try:
        value = json.loads(data)
    except (UnicodeDecodeError, ValueError) as exc:
        raise DataFormatError(filename, f"not valid JSON ({exc})") from exc
    if not isinstance(value, dict):
        raise DataFormatError(filename, "expected a JSON object")
    return value


def _read_pad_token(tokenizer_config: Dict[str, Any]) -> str:
    pad_token = tokenizer_config.get("pad_token")
    # Newer exports write the token as {"content": "[PAD]", ...}
    if isinstance(pad_token, dict):
        pad_token = pad_token.get("content")
    if not isinstance(pad_token, str):
        raise DataFormatError(
            TOKENIZER_CONFIG_FILE, "missing or not a string", field="pad_token"
        )
    return pad_token


def _read_model_max_length(tokenizer_config: Dict[str, Any]) -> float:
    value = tokenizer_config.get("model_max_length")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DataFormatError(
            TOKENIZER_CONFIG_FILE, "missing or not a number", field="model_max_length"
        )
    if isinstance(value, float) and not math.isfinite(value):
        raise DataFormatError(
            TOKENIZER_CONFIG_FILE, f"not a finite number: {value}", field="model_max_length"
        )
    return value


def effective_max_length(requested: int, model_max_length: float) -> int:
    """Truncation length: the smaller of the caller's and the model's limit."""
    return min(requested, int(model_max_length))


def _special_token(key: str, value: Any) -> AddedToken:
    if isinstance(value, str):
        return AddedToken(value, special=True, normalized=True)

    if not isinstance(value, dict):
        raise DataFormatError(
            SPECIAL_TOKENS_MAP_FILE, "expected a string or an object", field=key
        )

    content = value.get("content")
    if not isinstance(content, str):
        raise DataFormatError(
            SPECIAL_TOKENS_MAP_FILE, "'content' missing or not a string", field=key
        )
    flags = {}
    for flag in SPECIAL_TOKEN_FLAGS:
        if not isinstance(value.get(flag), bool):
            raise DataFormatError(
                SPECIAL_TOKENS_MAP_FILE,
                f"'{flag}' missing or not a boolean",
                field=key,
            )
        flags[flag] = value[flag]
    return AddedToken(content, special=True, **flags)


def _special_tokens(special_tokens_map: Dict[str, Any]) -> List[AddedToken]:
    tokens = []
    for key, value in special_tokens_map.items():
        # e.g. "additional_special_tokens": ["<s>", {...}]
        if isinstance(value, list):
            tokens.extend(_special_token(key, item) for item in value)
        else:
            tokens.append(_special_token(key, value))
    return tokens


def load_tokenizer(tokenizer_files: TokenizerFiles, max_length: int) -> Tokenizer:
    """
    Build a configured tokenizer from raw file bytes.

    Args:
        tokenizer_files : bytes of the four tokenizer-related files
        max_length      : requested truncation length; capped by the
                          model's own ``model_max_length``

    Returns:
        A ``tokenizers.Tokenizer`` with padding, truncation and special
        tokens applied.

    Raises:
        DataFormatError : if any file is malformed or lacks a required field
    """
    config = _parse_json_object(tokenizer_files.config_file, CONFIG_FILE)
    special_tokens_map = _parse_json_object(
        tokenizer_files.special_tokens_map_file, SPECIAL_TOKENS_MAP_FILE
    )
    tokenizer_config = _parse_json_object(
        tokenizer_files.tokenizer_config_file, TOKENIZER_CONFIG_FILE
    )

    try:
        tokenizer = Tokenizer.from_buffer(tokenizer_files.tokenizer_file)
    except Exception as exc:  # tokenizers raises a bare Exception
        raise DataFormatError(TOKENIZER_FILE, str(exc)) from exc

    model_max_length = _read_model_max_length(tokenizer_config)
    max_length = effective_max_length(max_length, model_max_length)
    pad_id = config.get("pad_token_id")
    if not isinstance(pad_id, int) or isinstance(pad_id, bool) or pad_id < 0:
        pad_id = 0
    pad_token = _read_pad_token(tokenizer_config)

    tokenizer.enable_padding(pad_id=pad_id, pad_token=pad_token)
    try:
        tokenizer.enable_truncation(max_length=max_length)
    except Exception as exc:
        raise DataFormatError(
            TOKENIZER_CONFIG_FILE, str(exc), field="model_max_length"
        ) from exc

    tokens = _special_tokens(special_tokens_map)
    tokenizer.add_special_tokens(tokens)

    logger.debug(
        "Tokenizer ready: max_length=%d pad_token=%r pad_id=%d special_tokens=%d",
        max_length,
        pad_token,
        pad_id,
        len(tokens),
    )
    return tokenizer


def load_tokenizer_hf_hub(repo, max_length: int) -> Tokenizer:
    """
    Fetch the tokenizer files from a model repository and build the tokenizer.

    Args:
        repo       : a ``ModelRepository`` (anything with ``get(filename)``)
        max_length : requested truncation length
    """
    tokenizer_files = TokenizerFiles(
        tokenizer_file=read_file_to_bytes(repo.get(TOKENIZER_FILE)),
        config_file=read_file_to_bytes(repo.get(CONFIG_FILE)),
        special_tokens_map_file=read_file_to_bytes(repo.get(SPECIAL_TOKENS_MAP_FILE)),
        tokenizer_config_file=read_file_to_bytes(repo.get(TOKENIZER_CONFIG_FILE)),
    )
    return load_tokenizer(tokenizer_files, max_length)
