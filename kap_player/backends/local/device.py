"""
Output device discovery and selection.

Enumerates PortAudio output devices via sounddevice and resolves the
configured device string ("default", an index, or a name) to one of them.
"""

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class OutputDevice:
    """An audio output device."""

    index: int
    name: str
    channels: int
    default_samplerate: float
    is_default: bool

    def describe(self) -> str:
        marker = " (default)" if self.is_default else ""
        return f"[{self.index}] {self.name}{marker} - {self.channels}ch, {int(self.default_samplerate)}Hz"


def _import_sounddevice():
    """Import sounddevice, which needs the PortAudio shared library."""
    try:
        import sounddevice as sd

        return sd
    except (ImportError, OSError) as e:
        raise ImportError(
            f"sounddevice is required for the local audio sink ({e}). "
            "Install PortAudio and run: pip install sounddevice"
        )


def list_output_devices() -> list[OutputDevice]:
    """List devices that have at least one output channel."""
    sd = _import_sounddevice()
    default_output = sd.default.device[1]

    return [
        OutputDevice(
            index=i,
            name=dev["name"],
            channels=dev["max_output_channels"],
            default_samplerate=dev["default_samplerate"],
            is_default=(i == default_output),
        )
        for i, dev in enumerate(sd.query_devices())
        if dev["max_output_channels"] > 0
    ]


def resolve_device(selector: str) -> OutputDevice:
    """
    Resolve a configured device string.

    Args:
        selector: "default", a device index, an exact name, or a name substring
            (all name matching is case-insensitive)

    Raises:
        ValueError: If nothing matches; the message lists available devices
    """
    devices = list_output_devices()
    if not devices:
        raise ValueError("No audio output devices found on this system")

    if selector.lower() == "default":
        for dev in devices:
            if dev.is_default:
                return dev
        logger.warning("No default output device reported, using first available")
        return devices[0]

    if selector.strip().isdigit():
        index = int(selector)
        for dev in devices:
            if dev.index == index:
                return dev
        raise ValueError(
            f"No audio output device at index {index}. "
            f"Available devices:\n{format_device_list(devices)}"
        )

    wanted = selector.lower()
    exact = [d for d in devices if d.name.lower() == wanted]
    if exact:
        return exact[0]

    partial = [d for d in devices if wanted in d.name.lower()]
    if len(partial) > 1:
        logger.warning(f"Multiple devices match '{selector}', using first: {partial[0].name}")
    if partial:
        return partial[0]

    raise ValueError(
        f"No audio device matching '{selector}'. "
        f"Available devices:\n{format_device_list(devices)}"
    )


def format_device_list(devices: Optional[list[OutputDevice]] = None) -> str:
    """Format device list for display."""
    if devices is None:
        devices = list_output_devices()
    return "\n".join(f"  {dev.describe()}" for dev in devices)
