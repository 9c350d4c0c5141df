"""
OpenVINO subpackage -- compiled inference sessions and device selection.

Modules:
    device_manager -- detect devices, map provider lists to device strings
    session        -- compile a network and run named-tensor inference
"""

from textembed.openvino.device_manager import DeviceManager
from textembed.openvino.session import InferenceSession
