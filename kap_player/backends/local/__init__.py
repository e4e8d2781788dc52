"""Local audio output through PortAudio."""

from .backend import LocalAudioSink
from .device import OutputDevice, format_device_list, list_output_devices, resolve_device
from .stream import PcmOutputStream

__all__ = [
    "LocalAudioSink",
    "OutputDevice",
    "PcmOutputStream",
    "format_device_list",
    "list_output_devices",
    "resolve_device",
]
