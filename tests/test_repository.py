from pathlib import Path
from unittest import mock

import pytest

from textembed.embeddings.models import EmbeddingModel, get_model_info
from textembed.errors import RepositoryError
from textembed.hub.repository import (
    ModelRepository,
    read_file_to_bytes,
    resolve_model_files,
    retrieve_model,
)


@pytest.fixture
def hub():
    with mock.patch("textembed.hub.repository.hf_hub_download") as download, \
            mock.patch("textembed.hub.repository.are_progress_bars_disabled", return_value=False), \
            mock.patch("textembed.hub.repository.disable_progress_bars") as disable, \
            mock.patch("textembed.hub.repository.enable_progress_bars") as enable:
        download.side_effect = lambda repo_id, filename, cache_dir: f"{cache_dir}/{repo_id}/{filename}"
        yield mock.Mock(download=download, disable=disable, enable=enable)


def test_get_downloads_into_cache_dir(hub, tmp_path):
    repo = ModelRepository("Xenova/bge-small-en-v1.5", tmp_path)

    path = repo.get("onnx/model.onnx")

    hub.download.assert_called_once_with(
        repo_id="Xenova/bge-small-en-v1.5",
        filename="onnx/model.onnx",
        cache_dir=str(tmp_path),
    )
    assert path == Path(f"{tmp_path}/Xenova/bge-small-en-v1.5/onnx/model.onnx")


def test_progress_bars_left_alone_when_enabled(hub, tmp_path):
    ModelRepository("org/model", tmp_path, show_progress=True).get("config.json")

    hub.disable.assert_not_called()
    hub.enable.assert_not_called()


def test_progress_bars_silenced_for_the_call(hub, tmp_path):
    ModelRepository("org/model", tmp_path, show_progress=False).get("config.json")

    hub.disable.assert_called_once_with()
    hub.enable.assert_called_once_with()


def test_progress_bars_restored_after_failure(hub, tmp_path):
    hub.download.side_effect = OSError("connection reset")

    with pytest.raises(RepositoryError):
        ModelRepository("org/model", tmp_path, show_progress=False).get("config.json")
    hub.enable.assert_called_once_with()


@pytest.mark.parametrize("error", [OSError("connection reset"), FileNotFoundError("gone")])
def test_failures_become_repository_errors(hub, tmp_path, error):
    hub.download.side_effect = error

    with pytest.raises(RepositoryError) as exc_info:
        ModelRepository("org/model", tmp_path).get("model.onnx")
    assert exc_info.value.repo_id == "org/model"
    assert exc_info.value.filename == "model.onnx"
    assert exc_info.value.__cause__ is error


def test_retrieve_model_uses_repository_id(tmp_path):
    repo = retrieve_model(EmbeddingModel.BGEBaseENV15, tmp_path, False)

    assert repo.repo_id == "Xenova/bge-base-en-v1.5"
    assert repo.cache_dir == tmp_path
    assert repo.show_progress is False


class RecordingRepo:
    def __init__(self, missing=()):
        self.requested = []
        self.missing = set(missing)

    def get(self, filename):
        self.requested.append(filename)
        if filename in self.missing:
            raise RepositoryError("org/model", filename)
        return Path("/cache") / filename


def test_resolve_fetches_weights_then_side_files():
    repo = RecordingRepo()
    info = get_model_info(EmbeddingModel.MultilingualE5Large)

    path = resolve_model_files(info, repo)

    assert path == Path("/cache/model.onnx")
    assert repo.requested == ["model.onnx", "model.onnx_data"]


def test_resolve_without_side_files():
    repo = RecordingRepo()
    info = get_model_info(EmbeddingModel.BGESmallENV15)

    resolve_model_files(info, repo)

    assert repo.requested == ["onnx/model.onnx"]


def test_resolve_fails_fast_on_missing_side_file():
    repo = RecordingRepo(missing={"model.onnx_data"})
    info = get_model_info(EmbeddingModel.MultilingualE5Large)

    with pytest.raises(RepositoryError) as exc_info:
        resolve_model_files(info, repo)
    assert exc_info.value.filename == "model.onnx_data"


def test_read_file_to_bytes(tmp_path):
    target = tmp_path / "model.onnx"
    target.write_bytes(b"\x08\x07onnx")

    assert read_file_to_bytes(target) == b"\x08\x07onnx"
    assert read_file_to_bytes(str(target)) == b"\x08\x07onnx"


def test_read_file_to_bytes_missing_file(tmp_path):
    with pytest.raises(RepositoryError) as exc_info:
        read_file_to_bytes(tmp_path / "nope")
    assert exc_info.value.filename == "nope"
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)


def test_read_file_to_bytes_directory(tmp_path):
    with pytest.raises(RepositoryError):
        read_file_to_bytes(tmp_path)
