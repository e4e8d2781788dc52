"""
kap-player CLI entry point.

Provides command-line interface for running kap-player.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from kap_player import __version__
from kap_player.app import KapPlayer
from kap_player.backends import SinkNotFoundError
from kap_player.config import (
    Config,
    ConfigError,
    load_config,
    parse_extensions,
    set_nested,
)
from kap_player.errors import ScanError

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_LIBRARY_ERROR = 2
EXIT_DEVICE_ERROR = 3


def setup_logging(level: str = "info") -> None:
    """Configure logging to stdout."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )


def parse_args(argv: Any = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="kap-player",
        description="Play the audio files of a folder in order or shuffled",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  kap-player --folder ~/Music/album
  kap-player --folder ./music --shuffle --ext .mp3,.flac
  kap-player --list-devices
  kap-player --config config.yaml --backend null

Environment Variables:
  KAP_MUSIC_FOLDER, KAP_EXTENSIONS, KAP_SHUFFLE, KAP_AUTO_ADVANCE, KAP_AUTOPLAY
  KAP_BACKEND, KAP_AUDIO_DEVICE, KAP_BUFFER_SIZE, KAP_LOG_LEVEL
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List audio output devices and exit",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("./config.yaml"),
        metavar="PATH",
        help="Path to config file (default: ./config.yaml)",
    )

    # Library
    library_group = parser.add_argument_group("Library")
    library_group.add_argument(
        "--folder",
        "-f",
        metavar="PATH",
        help="Music folder to load (default: ./music)",
    )
    library_group.add_argument(
        "--ext",
        type=parse_extensions,
        dest="extensions",
        metavar="LIST",
        help="Comma separated audio extensions (default: .mp3)",
    )

    # Playback
    playback_group = parser.add_argument_group("Playback")
    playback_group.add_argument(
        "--shuffle",
        action="store_true",
        help="Start with shuffle enabled",
    )
    playback_group.add_argument(
        "--no-auto-advance",
        action="store_true",
        help="Do not move to the next track when one ends",
    )
    playback_group.add_argument(
        "--no-autoplay",
        action="store_true",
        help="Load the folder without starting the first track",
    )

    # Audio output
    output_group = parser.add_argument_group("Audio Output")
    output_group.add_argument(
        "--backend",
        choices=["local", "null"],
        metavar="TYPE",
        help="Audio sink: local (sound card) or null (no audio)",
    )
    output_group.add_argument(
        "--device",
        metavar="TEXT",
        help="Output device: 'default', index, or name",
    )
    output_group.add_argument(
        "--buffer-size",
        type=int,
        metavar="INT",
        help="Frames per audio callback (default: 2048)",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        metavar="LEVEL",
        help="Log level: debug, info, warning, error",
    )

    return parser.parse_args(argv)


def args_to_dict(args: argparse.Namespace) -> dict:
    """Convert argparse namespace to nested config dict."""
    result: dict = {}

    mappings = {
        "folder": ("library", "folder"),
        "extensions": ("library", "extensions"),
        "backend": ("backend", "type"),
        "device": ("backend", "local", "device"),
        "buffer_size": ("backend", "local", "buffer_size"),
        "log_level": ("logging", "level"),
    }

    for arg_name, path in mappings.items():
        value = getattr(args, arg_name, None)
        if value is None:
            continue
        set_nested(result, path, value)

    # Flags only override when given
    if getattr(args, "shuffle", False):
        set_nested(result, ("playback", "shuffle"), True)
    if getattr(args, "no_auto_advance", False):
        set_nested(result, ("playback", "auto_advance"), False)
    if getattr(args, "no_autoplay", False):
        set_nested(result, ("playback", "autoplay"), False)

    return result


def log_config(config: Config) -> None:
    """Log configuration summary."""
    logger.info(f"Music folder: {config.library.folder} ({', '.join(config.library.extensions)})")
    logger.info(f"Audio sink: {config.backend.type}")
    if config.backend.type == "local":
        logger.info(
            f"Output device: {config.backend.local.device} "
            f"(buffer {config.backend.local.buffer_size} frames)"
        )
    logger.info(
        f"Shuffle: {'on' if config.playback.shuffle else 'off'}, "
        f"auto-advance: {'on' if config.playback.auto_advance else 'off'}"
    )


def run_list_devices() -> int:
    """Print available audio output devices."""
    from kap_player.backends.local.device import format_device_list, list_output_devices

    try:
        devices = list_output_devices()
    except ImportError as e:
        print(f"Cannot list devices: {e}")
        return EXIT_DEVICE_ERROR

    if not devices:
        print("No audio output devices found.")
        return EXIT_SUCCESS

    print(f"Found {len(devices)} output device(s):\n")
    print(format_device_list(devices))
    return EXIT_SUCCESS


def run_player(args: argparse.Namespace) -> int:
    """
    Run the interactive player.

    Returns:
        Exit code
    """
    setup_logging("warning")

    try:
        config = load_config(args.config, args_to_dict(args))
        setup_logging(config.logging.level)
        logger.info(f"kap-player v{__version__}")
        log_config(config)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    try:
        app = KapPlayer(config)
        asyncio.run(app.run())
        return EXIT_SUCCESS

    except ScanError as e:
        logger.error(f"Library error: {e}")
        return EXIT_LIBRARY_ERROR

    except SinkNotFoundError as e:
        logger.error(f"Audio output error: {e}")
        return EXIT_DEVICE_ERROR

    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_SUCCESS


def main(argv: Any = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code: 0=success, 1=config error, 2=library error, 3=audio device error
    """
    args = parse_args(argv)

    if args.list_devices:
        return run_list_devices()
    return run_player(args)


if __name__ == "__main__":
    sys.exit(main())
