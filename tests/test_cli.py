"""Tests for the command-line entry point."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from kap_player import cli
from kap_player.backends import SinkNotFoundError
from kap_player.backends.local.device import OutputDevice
from kap_player.config import ENV_MAPPINGS
from kap_player.errors import ScanError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for env_var in ENV_MAPPINGS:
        monkeypatch.delenv(env_var, raising=False)


class TestParseArgs:
    """Test argument parsing."""

    def test_defaults(self) -> None:
        args = cli.parse_args([])

        assert args.config == Path("./config.yaml")
        assert args.folder is None
        assert args.extensions is None
        assert args.shuffle is False
        assert args.list_devices is False

    def test_extensions_normalized(self) -> None:
        args = cli.parse_args(["--ext", "mp3,FLAC"])
        assert args.extensions == [".mp3", ".flac"]

    def test_invalid_backend_rejected(self) -> None:
        with pytest.raises(SystemExit):
            cli.parse_args(["--backend", "bluetooth"])


class TestArgsToDict:
    """Test conversion of parsed arguments to a config dict."""

    def test_empty_args_override_nothing(self) -> None:
        assert cli.args_to_dict(cli.parse_args([])) == {}

    def test_all_options(self) -> None:
        args = cli.parse_args(
            [
                "-f", "/srv/music",
                "--ext", "flac",
                "--shuffle",
                "--no-auto-advance",
                "--no-autoplay",
                "--backend", "local",
                "--device", "USB",
                "--buffer-size", "512",
                "--log-level", "debug",
            ]
        )

        assert cli.args_to_dict(args) == {
            "library": {"folder": "/srv/music", "extensions": [".flac"]},
            "playback": {"shuffle": True, "auto_advance": False, "autoplay": False},
            "backend": {"type": "local", "local": {"device": "USB", "buffer_size": 512}},
            "logging": {"level": "debug"},
        }


class TestMain:
    """Test exit codes."""

    @pytest.fixture
    def no_config(self, tmp_path: Path) -> list[str]:
        return ["--config", str(tmp_path / "missing.yaml"), "--backend", "null"]

    def _run_with(self, argv: list[str], error: BaseException) -> int:
        with patch("kap_player.cli.KapPlayer") as player_cls:
            player_cls.return_value.run = MagicMock(side_effect=error)
            return cli.main(argv)

    def test_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  level: loud\n")

        assert cli.main(["--config", str(path)]) == cli.EXIT_CONFIG_ERROR

    def test_config_type_error(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("backend:\n  local:\n    buffer_size: big\n")

        assert cli.main(["--config", str(path)]) == cli.EXIT_CONFIG_ERROR

    def test_success(self, no_config: list[str]) -> None:
        with patch("kap_player.cli.KapPlayer") as player_cls, patch("kap_player.cli.asyncio.run") as run:
            assert cli.main(no_config) == cli.EXIT_SUCCESS

        config = player_cls.call_args.args[0]
        assert config.backend.type == "null"
        run.assert_called_once()

    def test_library_error(self, no_config: list[str]) -> None:
        code = self._run_with(no_config, ScanError("Music folder not found: ./music"))
        assert code == cli.EXIT_LIBRARY_ERROR

    def test_device_error(self, no_config: list[str]) -> None:
        code = self._run_with(no_config, SinkNotFoundError("Failed to open audio output 'local'"))
        assert code == cli.EXIT_DEVICE_ERROR

    def test_keyboard_interrupt(self, no_config: list[str]) -> None:
        assert self._run_with(no_config, KeyboardInterrupt()) == cli.EXIT_SUCCESS


class TestListDevices:
    """Test --list-devices."""

    def test_lists_devices(self, capsys) -> None:
        devices = [
            OutputDevice(index=0, name="Speakers", channels=2, default_samplerate=44100.0, is_default=True)
        ]
        with patch("kap_player.backends.local.device.list_output_devices", return_value=devices):
            assert cli.main(["--list-devices"]) == cli.EXIT_SUCCESS

        out = capsys.readouterr().out
        assert "Found 1 output device(s)" in out
        assert "[0] Speakers (default)" in out

    def test_no_devices(self, capsys) -> None:
        with patch("kap_player.backends.local.device.list_output_devices", return_value=[]):
            assert cli.main(["--list-devices"]) == cli.EXIT_SUCCESS

        assert "No audio output devices found." in capsys.readouterr().out

    def test_portaudio_missing(self) -> None:
        with patch(
            "kap_player.backends.local.device.list_output_devices",
            side_effect=ImportError("PortAudio library not found"),
        ):
            assert cli.main(["--list-devices"]) == cli.EXIT_DEVICE_ERROR
