"""
OpenVINO Device Manager
========================
Turns a caller's ordered list of execution providers into the device
string OpenVINO compiles for, and reports the hardware the runtime sees.

Intel AI-PC devices:
    CPU  -- always available, baseline performance
    GPU  -- Intel integrated GPU (iGPU); good for throughput workloads
    NPU  -- Neural Processing Unit on Meteor Lake+; best perf/watt

Provider lists map onto devices as follows:
    []              -> "CPU"
    ["GPU"]         -> "GPU"
    ["GPU", "CPU"]  -> "AUTO:GPU,CPU"

The AUTO plugin walks the priority list and runs on the first device that
can compile the network, so the list is passed through unchanged and
the choice is left to the runtime.
"""

import logging
from typing import Dict, List, Optional, Sequence

import openvino as ov

logger = logging.getLogger(__name__)

DEFAULT_DEVICE = "CPU"
META_DEVICES = ("AUTO", "MULTI", "HETERO")


def device_for_providers(execution_providers: Sequence[str]) -> str:
    """
    Build the OpenVINO device string for an ordered provider list.

    Args:
        execution_providers : device names in order of preference

    Returns:
        The string to pass to ``Core.compile_model(device_name=...)``.
    """
    providers = [p.strip() for p in execution_providers if p and p.strip()]
    if not providers:
        return DEFAULT_DEVICE
    if len(providers) == 1:
        return providers[0]
    return "AUTO:" + ",".join(providers)


class DeviceManager:
    """
    OpenVINO device detection.

    Usage::

        dm = DeviceManager()
        dm.list_devices()              # ['CPU', 'GPU']
        dm.device_properties("CPU")    # {'FULL_DEVICE_NAME': '...', ...}
    """

    def __init__(self, core: Optional[ov.Core] = None):
        self._core = core or ov.Core()
        self._devices: List[str] = list(self._core.available_devices)
        logger.info("OpenVINO devices: %s", self._devices)

    @property
    def core(self) -> ov.Core:
        """Access the underlying OpenVINO Core instance."""
        return self._core

    def list_devices(self) -> List[str]:
        """Return a list of available device strings (e.g. ['CPU', 'GPU'])."""
        return list(self._devices)

    def check_providers(self, execution_providers: Sequence[str]) -> List[str]:
        """
        Return the providers that are not present on this machine.

        Missing providers are only logged: AUTO skips them at compile time.
        """
        known = set(self._devices) | {d.split(".")[0] for d in self._devices}
        missing = [
            p for p in execution_providers
            if p not in known and not p.upper().startswith(META_DEVICES)
        ]
        if missing:
            logger.warning(
                "Execution providers not available here: %s (have: %s)",
                missing,
                self._devices,
            )
        return missing

    def device_properties(self, device: str) -> Dict[str, str]:
        """
        Return known properties for a device (name, architecture, etc.).

        Properties queried:
            - FULL_DEVICE_NAME: human-readable name
              e.g. "13th Gen Intel(R) Core(TM) i5-13420H"
            - DEVICE_ARCHITECTURE: internal architecture identifier
            - OPTIMAL_NUMBER_OF_INFER_REQUESTS: how many parallel
              inference requests the device can handle efficiently

        Properties a plugin does not support are left out.
        """
        props: Dict[str, str] = {}
        for key in (
            "FULL_DEVICE_NAME",
            "DEVICE_ARCHITECTURE",
            "OPTIMAL_NUMBER_OF_INFER_REQUESTS",
        ):
            try:
                props[key] = str(self._core.get_property(device, key))
            except RuntimeError as exc:
                logger.debug("%s does not report %s: %s", device, key, exc)
        return props

    def device_summary(self) -> List[Dict[str, str]]:
        """One row per available device, for ``cli.py devices``."""
        summaries = []
        for device in self.list_devices():
            props = self.device_properties(device)
            summaries.append({
                "device": device,
                "name": props.get("FULL_DEVICE_NAME", "Unknown"),
                "architecture": props.get("DEVICE_ARCHITECTURE", ""),
                "optimal_requests": props.get(
                    "OPTIMAL_NUMBER_OF_INFER_REQUESTS", ""
                ),
            })
        return summaries
