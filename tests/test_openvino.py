import io
from unittest import mock

import numpy as np
import pytest

from textembed.errors import EngineBuildError
from textembed.openvino.device_manager import DeviceManager, device_for_providers
from textembed.openvino.session import InferenceSession


@pytest.mark.parametrize(
    "providers, expected",
    [
        ([], "CPU"),
        (["GPU"], "GPU"),
        (["GPU", "CPU"], "AUTO:GPU,CPU"),
        (["NPU", "GPU", "CPU"], "AUTO:NPU,GPU,CPU"),
        (["", " CPU "], "CPU"),
    ],
)
def test_device_for_providers(providers, expected):
    assert device_for_providers(providers) == expected


def make_core(devices=("CPU",)):
    core = mock.Mock()
    core.available_devices = list(devices)
    return core


def test_device_manager_lists_devices():
    dm = DeviceManager(make_core(["CPU", "GPU.0"]))
    assert dm.list_devices() == ["CPU", "GPU.0"]


def test_check_providers_reports_missing_only():
    dm = DeviceManager(make_core(["CPU", "GPU.0"]))

    assert dm.check_providers(["GPU", "CPU", "AUTO"]) == []
    assert dm.check_providers(["NPU", "CPU"]) == ["NPU"]


def test_device_properties_skips_unsupported_keys():
    core = make_core()

    def get_property(device, key):
        if key == "FULL_DEVICE_NAME":
            return "Test CPU"
        raise RuntimeError("unsupported")

    core.get_property.side_effect = get_property
    dm = DeviceManager(core)

    assert dm.device_properties("CPU") == {"FULL_DEVICE_NAME": "Test CPU"}
    assert dm.device_summary() == [
        {"device": "CPU", "name": "Test CPU", "architecture": "", "optimal_requests": ""}
    ]


class FakePort:
    def __init__(self, *names):
        self._names = set(names)

    def get_names(self):
        return set(self._names)


class FakeRequest:
    def __init__(self, compiled):
        self.compiled = compiled

    def infer(self, inputs):
        self.compiled.seen.append(inputs)
        rows, seq_len = inputs["input_ids"].shape
        return {self.compiled.outputs[0]: np.ones((rows, seq_len, 4), dtype=np.float32)}


class FakeCompiledModel:
    def __init__(self, input_names=("input_ids", "attention_mask", "token_type_ids")):
        self.inputs = [FakePort(name) for name in input_names]
        self.outputs = [FakePort("last_hidden_state", "hidden")]
        self.seen = []
        self.requests = 0

    def create_infer_request(self):
        self.requests += 1
        return FakeRequest(self)


def test_session_reports_input_and_output_names():
    session = InferenceSession(FakeCompiledModel(), "CPU", 4)

    assert session.input_names == ["input_ids", "attention_mask", "token_type_ids"]
    assert session.output_names == ["hidden", "last_hidden_state"]


def test_run_uses_a_request_per_call_and_maps_every_output_name():
    compiled = FakeCompiledModel()
    session = InferenceSession(compiled, "CPU", 4)
    ids = np.zeros((2, 5), dtype=np.int64)

    first = session.run({"input_ids": ids, "attention_mask": ids})
    session.run({"input_ids": ids, "attention_mask": ids})

    assert compiled.requests == 2
    assert first["last_hidden_state"].shape == (2, 5, 4)
    assert first["hidden"] is first["last_hidden_state"]
    assert set(compiled.seen[0]) == {"input_ids", "attention_mask"}


@pytest.fixture
def ov_module():
    with mock.patch("textembed.openvino.session.ov") as ov:
        core = make_core(["CPU", "GPU"])
        core.compile_model.return_value = FakeCompiledModel()
        ov.Core.return_value = core
        yield ov


def test_from_file_compiles_with_threads_and_hint(ov_module, tmp_path):
    path = tmp_path / "model.onnx"
    core = ov_module.Core.return_value

    session = InferenceSession.from_file(path, ["CPU"], num_threads=3)

    core.read_model.assert_called_once_with(str(path))
    core.set_property.assert_called_once_with("CPU", {"INFERENCE_NUM_THREADS": 3})
    core.compile_model.assert_called_once_with(
        core.read_model.return_value, "CPU", {"PERFORMANCE_HINT": "LATENCY"}
    )
    assert session.device == "CPU"
    assert session.num_threads == 3
    assert "token_type_ids" in session.input_names


def test_from_file_passes_provider_priority_through(ov_module, tmp_path):
    core = ov_module.Core.return_value

    session = InferenceSession.from_file(tmp_path / "model.onnx", ["GPU", "CPU"])

    assert core.compile_model.call_args[0][1] == "AUTO:GPU,CPU"
    assert session.device == "AUTO:GPU,CPU"
    assert session.num_threads >= 1


def test_from_file_skips_cpu_threads_for_accelerator_only(ov_module, tmp_path):
    core = ov_module.Core.return_value

    InferenceSession.from_file(tmp_path / "model.onnx", ["GPU"], num_threads=2)

    core.set_property.assert_not_called()


def test_from_memory_converts_onnx_bytes(ov_module):
    core = ov_module.Core.return_value

    InferenceSession.from_memory(b"onnx-bytes", [], num_threads=2)

    (stream,), _ = ov_module.convert_model.call_args
    assert isinstance(stream, io.BytesIO)
    assert stream.getvalue() == b"onnx-bytes"
    assert core.compile_model.call_args[0][0] is ov_module.convert_model.return_value


def test_build_failure_raises_engine_build_error(ov_module, tmp_path):
    core = ov_module.Core.return_value
    core.read_model.side_effect = RuntimeError("cannot parse model")

    with pytest.raises(EngineBuildError, match="cannot parse model") as exc_info:
        InferenceSession.from_file(tmp_path / "broken.onnx", [])
    assert exc_info.value.source.endswith("broken.onnx")
