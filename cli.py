"""
textembed -- Command Line Interface
====================================
Entry point for user-facing operations.

Commands:
  embed    -- Embed one or more texts and print / save the vectors
  models   -- List the supported embedding models
  devices  -- List available OpenVINO hardware devices

Usage examples:
  python cli.py embed "passage: Hello, World!" "query: Hello, World!"
  python cli.py embed --model BGEBaseENV15 --output vectors.npy "some text"
  python cli.py embed --input texts.txt --batch-size 64 --device GPU --device CPU
  python cli.py models
  python cli.py devices

Design notes:
  - Defaults come from configs/settings.yaml; flags override them.
  - Each command maps to a handler function.
  - Logging is configured at startup based on --verbose flag.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

logger = logging.getLogger("textembed.cli")


def setup_logging(verbose: bool = False) -> None:
    """Configure root logger."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# ===================================================================
# Command handlers
# ===================================================================

def _read_texts(args: argparse.Namespace) -> List[str]:
    texts = list(args.texts)
    if args.input:
        with open(args.input, "r", encoding="utf-8") as f:
            texts.extend(line.rstrip("\n") for line in f if line.strip())
    return texts


def cmd_embed(args: argparse.Namespace) -> None:
    """
    Embed texts: settings -> options -> model -> vectors -> stdout / file.
    """
    import numpy as np

    from textembed.config import (
        batch_size_from_settings,
        embedding_options_from_settings,
        load_settings,
    )
    from textembed.embeddings.models import parse_model
    from textembed.embeddings.text_embedding import TextEmbedding

    texts = _read_texts(args)
    if not texts:
        print("ERROR: No texts given.  Pass them as arguments or with --input.")
        sys.exit(1)

    settings = load_settings(args.config)
    options = embedding_options_from_settings(settings)
    batch_size = args.batch_size or batch_size_from_settings(settings)
    if args.model:
        options.model_name = parse_model(args.model)
    if args.max_length:
        options.max_length = args.max_length
    if args.cache_dir:
        options.cache_dir = Path(args.cache_dir)
    if args.devices:
        options.execution_providers = list(args.devices)
    if args.no_progress:
        options.show_download_progress = False

    model = TextEmbedding.try_new(options)
    embeddings = model.embed(texts, batch_size=batch_size)
    logger.info("Embedded %d texts with %s", len(embeddings), options.model_name)

    if args.output and args.output.endswith(".npy"):
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        np.save(str(out), np.stack(embeddings))
        print(f"Saved {len(embeddings)} embeddings to {out}")
        return

    payload = [
        {"text": text, "embedding": vector.tolist()}
        for text, vector in zip(texts, embeddings)
    ]
    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, "w", encoding="utf-8") as f:
            json.dump(payload, f)
        print(f"Saved {len(embeddings)} embeddings to {out}")
    else:
        json.dump(payload, sys.stdout)
        sys.stdout.write("\n")


def cmd_models(args: argparse.Namespace) -> None:
    """List the supported embedding models."""
    from textembed.embeddings.text_embedding import (
        DEFAULT_EMBEDDING_MODEL,
        TextEmbedding,
    )

    print(f"\n{'='*60}")
    print("Supported embedding models")
    print(f"{'='*60}\n")
    for info in TextEmbedding.list_supported_models():
        marker = "*" if info.model == DEFAULT_EMBEDDING_MODEL else " "
        print(
            f" {marker} {info.model.value:24s} {info.model_code:45s} "
            f"dim={info.dim:<5d} max_len={info.max_length}"
        )
        print(f"     {info.description}")
    print(f"\n{'='*60}")


def cmd_devices(args: argparse.Namespace) -> None:
    """List available OpenVINO devices."""
    from textembed.openvino.device_manager import DeviceManager

    print(f"\n{'='*60}")
    print("OpenVINO Device Discovery")
    print(f"{'='*60}\n")
    dm = DeviceManager()
    summary = dm.device_summary()
    if summary:
        for row in summary:
            print(f"  {row['device']:8s}  {row['name']}")
    else:
        print("  No devices found.")
    print(f"\n{'='*60}")


# ===================================================================
# Argument parser
# ===================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="textembed",
        description=(
            "Batched text embeddings for retrieval.  "
            "Powered by OpenVINO for efficient on-device inference."
        ),
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # -- embed --
    p_embed = subparsers.add_parser(
        "embed",
        help="Embed texts and print or save the vectors",
    )
    p_embed.add_argument(
        "texts",
        nargs="*",
        help="Texts to embed",
    )
    p_embed.add_argument(
        "--input",
        type=str,
        default=None,
        help="File with one text per line (appended to positional texts)",
    )
    p_embed.add_argument(
        "--model",
        type=str,
        default=None,
        help="Model name or Hub id, see 'models' (default: from settings)",
    )
    p_embed.add_argument(
        "--batch-size",
        type=int,
        default=None,
        dest="batch_size",
        help="Texts per inference batch (default: from settings, 256)",
    )
    p_embed.add_argument(
        "--max-length",
        type=int,
        default=None,
        dest="max_length",
        help="Maximum tokens per text (capped by the model)",
    )
    p_embed.add_argument(
        "--cache-dir",
        type=str,
        default=None,
        dest="cache_dir",
        help="Model cache directory",
    )
    p_embed.add_argument(
        "--device",
        action="append",
        default=None,
        dest="devices",
        help="OpenVINO device, repeat in order of preference (e.g. --device GPU --device CPU)",
    )
    p_embed.add_argument(
        "--no-progress",
        action="store_true",
        dest="no_progress",
        help="Hide download progress bars",
    )
    p_embed.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write vectors to a .json or .npy file instead of stdout",
    )
    p_embed.add_argument(
        "--config",
        type=str,
        default=None,
        help="Settings file (default: configs/settings.yaml)",
    )
    p_embed.set_defaults(func=cmd_embed)

    # -- models --
    p_models = subparsers.add_parser(
        "models",
        help="List the supported embedding models",
    )
    p_models.set_defaults(func=cmd_models)

    # -- devices --
    p_devices = subparsers.add_parser(
        "devices",
        help="List available OpenVINO hardware devices",
    )
    p_devices.set_defaults(func=cmd_devices)

    return parser


# ===================================================================
# Main entry point
# ===================================================================

def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    setup_logging(verbose=getattr(args, "verbose", False))

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        sys.exit(130)
    except Exception as exc:
        logging.error("Command failed: %s", exc, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
