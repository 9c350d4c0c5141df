"""
OpenVINO Inference Session
===========================
Owns one compiled embedding network and exposes a uniform
"named tensors in, named tensors out" call, whether the network was read
from an ONNX file on disk or from ONNX bytes held in memory.

Compilation settings:
    - PERFORMANCE_HINT=LATENCY: OpenVINO applies its full set of graph
      transformations (operator fusion, constant folding, layout
      propagation) at compile time and tunes streams for single requests.
    - INFERENCE_NUM_THREADS on the CPU plugin: one thread per logical CPU
      unless the caller overrides it.
    - Device: built from the ordered provider list, see
      ``device_manager.device_for_providers``.

Thread safety:
    The compiled model is read-only after construction.  ``run`` creates a
    fresh infer request per call, so many threads can run batches against
    the same session at once.

Usage:
    session = InferenceSession.from_file("model.onnx", ["CPU"])
    outputs = session.run({"input_ids": ids, "attention_mask": mask})
    hidden = outputs["last_hidden_state"]   # (batch, seq_len, dim)
"""

import io
import logging
import os
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import openvino as ov

from textembed.errors import EngineBuildError
from textembed.openvino.device_manager import DeviceManager, device_for_providers

logger = logging.getLogger(__name__)

PERFORMANCE_HINT = "LATENCY"


def _port_names(ports: Iterable) -> List[str]:
    names: List[str] = []
    for port in ports:
        for name in sorted(port.get_names()):
            if name not in names:
                names.append(name)
    return names


class InferenceSession:
    """
    A compiled OpenVINO network plus the settings it was compiled with.

    Args:
        compiled_model : ``openvino.CompiledModel``
        device         : device string the model was compiled for
        num_threads    : intra-op thread count requested from the CPU plugin
    """

    def __init__(self, compiled_model, device: str, num_threads: int):
        self._compiled_model = compiled_model
        self.device = device
        self.num_threads = num_threads
        self.input_names = _port_names(compiled_model.inputs)
        self.output_names = _port_names(compiled_model.outputs)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        execution_providers: Sequence[str] = (),
        num_threads: Optional[int] = None,
    ) -> "InferenceSession":
        """Compile the ONNX (or IR) model stored at ``path``."""
        path = Path(path)
        core = ov.Core()
        return cls._build(
            core,
            lambda: core.read_model(str(path)),
            str(path),
            execution_providers,
            num_threads,
        )

    @classmethod
    def from_memory(
        cls,
        data: bytes,
        execution_providers: Sequence[str] = (),
        num_threads: Optional[int] = None,
    ) -> "InferenceSession":
        """Compile an ONNX model held in memory."""
        return cls._build(
            ov.Core(),
            lambda: ov.convert_model(io.BytesIO(data)),
            f"<{len(data)} bytes in memory>",
            execution_providers,
            num_threads,
        )

    @classmethod
    def _build(
        cls,
        core: ov.Core,
        read_model: Callable[[], ov.Model],
        source: str,
        execution_providers: Sequence[str],
        num_threads: Optional[int],
    ) -> "InferenceSession":
        num_threads = num_threads or os.cpu_count() or 1
        device = device_for_providers(execution_providers)
        DeviceManager(core).check_providers(list(execution_providers))

        try:
            if "CPU" in device:
                core.set_property("CPU", {"INFERENCE_NUM_THREADS": num_threads})
            model = read_model()
            compiled = core.compile_model(
                model, device, {"PERFORMANCE_HINT": PERFORMANCE_HINT}
            )
        except Exception as exc:
            raise EngineBuildError(source, str(exc)) from exc

        session = cls(compiled, device, num_threads)
        logger.info(
            "Compiled %s on %s (threads=%d) inputs=%s outputs=%s",
            source,
            device,
            num_threads,
            session.input_names,
            session.output_names,
        )
        return session

    def run(self, inputs: Mapping[str, np.ndarray]) -> Dict[str, np.ndarray]:
        """
        Run one synchronous inference.

        Args:
            inputs : tensor name -> array, e.g. ``{"input_ids": ...}``

        Returns:
            Every output tensor, keyed by each of its names.
        """
        request = self._compiled_model.create_infer_request()
        results = request.infer(dict(inputs))
        outputs: Dict[str, np.ndarray] = {}
        for port in self._compiled_model.outputs:
            value = np.array(results[port])
            for name in port.get_names():
                outputs[name] = value
        return outputs
