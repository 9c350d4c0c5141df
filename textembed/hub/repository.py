"""
Model Repository
=================
Resolves model files from the HuggingFace Hub into a local cache
directory via ``huggingface_hub.hf_hub_download``.

Files already in the cache are returned without touching the network;
anything else is downloaded once.  Progress bars (tqdm, drawn by
huggingface_hub) can be switched off per repository.

Usage:
    repo = retrieve_model(EmbeddingModel.BGESmallENV15, Path(".textembed_cache"), True)
    weights = resolve_model_files(get_model_info(EmbeddingModel.BGESmallENV15), repo)
"""

import contextlib
import logging
from pathlib import Path
from typing import Iterator, Union

from huggingface_hub import hf_hub_download
from huggingface_hub.errors import (
    EntryNotFoundError,
    HfHubHTTPError,
    LocalEntryNotFoundError,
)
from huggingface_hub.utils import (
    are_progress_bars_disabled,
    disable_progress_bars,
    enable_progress_bars,
)

from textembed.errors import RepositoryError

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def _progress_bars(enabled: bool) -> Iterator[None]:
    """Temporarily silence hub progress bars when ``enabled`` is False."""
    if enabled or are_progress_bars_disabled():
        yield
        return
    disable_progress_bars()
    try:
        yield
    finally:
        enable_progress_bars()


class ModelRepository:
    """
    Handle on one Hub repository, scoped to a local cache directory.

    Args:
        repo_id       : Hub repository id, e.g. "Xenova/bge-small-en-v1.5"
        cache_dir     : directory that holds the downloaded files
        show_progress : draw download progress bars
    """

    def __init__(self, repo_id: str, cache_dir: Union[str, Path], show_progress: bool = True):
        self.repo_id = repo_id
        self.cache_dir = Path(cache_dir)
        self.show_progress = show_progress

    def get(self, filename: str) -> Path:
        """
        Return the local path of ``filename``, downloading it on a cache miss.

        Raises:
            RepositoryError : if the file is missing or cannot be fetched
        """
        try:
            with _progress_bars(self.show_progress):
                path = hf_hub_download(
                    repo_id=self.repo_id,
                    filename=filename,
                    cache_dir=str(self.cache_dir),
                )
        except (EntryNotFoundError, LocalEntryNotFoundError, HfHubHTTPError, OSError) as exc:
            raise RepositoryError(self.repo_id, filename, str(exc)) from exc
        logger.debug("Resolved %s/%s -> %s", self.repo_id, filename, path)
        return Path(path)

    def __repr__(self) -> str:
        return f"ModelRepository(repo_id={self.repo_id!r}, cache_dir={str(self.cache_dir)!r})"


def retrieve_model(model, cache_dir: Union[str, Path], show_download_progress: bool) -> ModelRepository:
    """Return the repository handle of a supported ``EmbeddingModel``."""
    return ModelRepository(str(model), cache_dir, show_progress=show_download_progress)


def resolve_model_files(model_info, repo: ModelRepository) -> Path:
    """
    Fetch the ONNX weights of ``model_info`` and every side-file it lists.

    Side-files are fetched after the weights, from the same repository
    snapshot, so OpenVINO finds external data next to the ``.onnx`` file.

    Returns:
        Local path of the weights file.

    Raises:
        RepositoryError : on the first file that cannot be retrieved
    """
    model_path = repo.get(model_info.model_file)
    for filename in model_info.additional_files:
        repo.get(filename)
    logger.info(
        "Model files ready: %s (%d side-file(s))",
        model_path,
        len(model_info.additional_files),
    )
    return model_path


def read_file_to_bytes(path: Union[str, Path]) -> bytes:
    """
    Read a whole file into memory.

    Handy for assembling a ``UserDefinedEmbeddingModel`` from files that
    are already in the local cache.

    Raises:
        RepositoryError : if the file cannot be read
    """
    path = Path(path)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise RepositoryError(str(path.parent), path.name, str(exc)) from exc
