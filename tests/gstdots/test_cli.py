import argparse
from pathlib import Path

import pytest

from gstdots import cli
from gstdots.app.paths import DOT_DIR_ENV, SETTINGS_ENV
from gstdots.core.errors import EXIT_DOT_DIR



@pytest.fixture(autouse=True)
def isolatedEnv(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv(SETTINGS_ENV, str(tmp_path / "no-settings.json5"))
    monkeypatch.delenv(DOT_DIR_ENV, raising=False)
    # Keep the test run's logging intact
    monkeypatch.setattr(cli, "configureLogging", lambda **kwargs: None)



def test_parser_flags() -> None:
    args = cli.buildParser().parse_args(["-a", "127.0.0.1", "-p", "8080", "-d", "/tmp/dots", "--log-level", "debug"])

    assert (args.address, args.port, args.dotdir, args.log_level) == ("127.0.0.1", 8080, "/tmp/dots", "debug")
    assert cli.buildParser().parse_args([]).port is None



@pytest.mark.parametrize("value", ["http", "-1", "65536"])
def test_port_rejectsInvalid(value: str) -> None:
    with pytest.raises(argparse.ArgumentTypeError):
        cli._port(value)



def test_main_badPortFlag_exitsWithUsage(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as info:
        cli.main(["--port", "99999"])
    assert info.value.code == 2
    assert "port must be between" in capsys.readouterr().err



def test_main_unusableDotDir(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")

    assert cli.main(["--dotdir", str(blocker / "dots")]) == EXIT_DOT_DIR
    assert "Failed to create directory" in capsys.readouterr().err



def test_main_missingSettingsFile(tmp_path: Path) -> None:
    assert cli.main(["--settings", str(tmp_path / "nope.json5")]) == 1



def test_main_invalidPortInSettings(tmp_path: Path) -> None:
    settings = tmp_path / "s.json5"
    settings.write_text("{ server: { port: 123456 } }", encoding="utf-8")

    assert cli.main(["--settings", str(settings)]) == 1



def test_main_servesWithResolvedConfig(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen = {}

    def fakeServe(app, config) -> int:
        seen["app"], seen["config"] = app, config
        return 0

    monkeypatch.setattr(cli, "serve", fakeServe)
    monkeypatch.setenv(DOT_DIR_ENV, str(tmp_path / "from-env"))
    monkeypatch.chdir(tmp_path)

    assert cli.main(["-p", "0", "-a", "127.0.0.1"]) == 0

    config = seen["config"]
    assert config.dotDir == tmp_path / "from-env"
    assert config.dotDir.is_dir()
    assert (config.port, config.address) == (0, "127.0.0.1")
    assert seen["app"].state.dots.config is config
