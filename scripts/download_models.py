"""
Download Models Script
=======================
One-time setup: download and cache the files of one or more supported
embedding models so later runs work offline.

This script is idempotent -- files already in the cache are not
downloaded again.

Files fetched per model:
    tokenizer.json, config.json, special_tokens_map.json,
    tokenizer_config.json, the ONNX weights and any side-files.

Usage:
    python scripts/download_models.py
    python scripts/download_models.py --model BGEBaseENV15 --model MultilingualE5Large
    python scripts/download_models.py --all --cache-dir /data/textembed
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List

from tqdm import tqdm

from textembed.embeddings.models import ModelInfo, get_model_info, models_list, parse_model
from textembed.embeddings.text_embedding import DEFAULT_CACHE_DIR, DEFAULT_EMBEDDING_MODEL
from textembed.errors import TextEmbedError
from textembed.hub.repository import retrieve_model
from textembed.tokenization.loader import (
    CONFIG_FILE,
    SPECIAL_TOKENS_MAP_FILE,
    TOKENIZER_CONFIG_FILE,
    TOKENIZER_FILE,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

TOKENIZER_FILES = (
    TOKENIZER_FILE,
    CONFIG_FILE,
    SPECIAL_TOKENS_MAP_FILE,
    TOKENIZER_CONFIG_FILE,
)


def files_for(info: ModelInfo) -> List[str]:
    """Every repository file a model needs, weights first."""
    return [info.model_file, *info.additional_files, *TOKENIZER_FILES]


def download_model(info: ModelInfo, cache_dir: Path) -> None:
    """Fetch every file of ``info`` into ``cache_dir``."""
    logger.info("Downloading embedding model: %s", info.model_code)
    # Per-file hub progress bars would fight with the outer one.
    repo = retrieve_model(info.model, cache_dir, show_download_progress=False)
    for filename in tqdm(files_for(info), desc=info.model.value, unit="file"):
        repo.get(filename)
    logger.info("Embedding model ready: %s (dim=%d)", info.model_code, info.dim)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Download embedding models into the textembed cache"
    )
    parser.add_argument(
        "--model",
        action="append",
        default=None,
        dest="models",
        help="Model name or Hub id (repeatable, default: %s)" % DEFAULT_EMBEDDING_MODEL.value,
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Download every supported model",
    )
    parser.add_argument(
        "--cache-dir",
        default=DEFAULT_CACHE_DIR,
        dest="cache_dir",
        help="Cache directory (default: %(default)s)",
    )
    args = parser.parse_args()

    if args.all:
        infos = models_list()
    else:
        names = args.models or [DEFAULT_EMBEDDING_MODEL.value]
        try:
            infos = [get_model_info(parse_model(name)) for name in names]
        except TextEmbedError as exc:
            logger.error("%s", exc)
            sys.exit(1)

    failed = 0
    for info in infos:
        try:
            download_model(info, Path(args.cache_dir))
        except TextEmbedError as exc:
            logger.error("Failed to download %s: %s", info.model_code, exc)
            failed += 1

    if failed:
        logger.error("%d model(s) failed to download.", failed)
        sys.exit(1)
    logger.info("Model download complete.")


if __name__ == "__main__":
    main()
