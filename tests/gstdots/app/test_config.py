from pathlib import Path

import pytest

from gstdots.app.config import ServerConfig, ensureDirectories, resolveDotDir, resolveServerConfig
from gstdots.app.paths import DOT_DIR_ENV, SETTINGS_ENV, defaultDotDir
from gstdots.app.settings import DEFAULT_SETTINGS, deepMerge, loadSettings, loadSettingsFile, settingsBool, settingsValue
from gstdots.core.errors import EXIT_DOT_DIR, DotDirError


# ----------------------------
# Settings tree
# ----------------------------

def test_deepMerge_overridesLeavesAndKeepsSiblings() -> None:
    base = {"server": {"address": "0.0.0.0", "port": 3000}, "list": [1, 2]}
    merged = deepMerge(base, {"server": {"port": 8080}, "list": [3]})

    assert merged == {"server": {"address": "0.0.0.0", "port": 8080}, "list": [3]}
    assert base["server"]["port"] == 3000



def test_loadSettingsFile_json5(tmp_path: Path) -> None:
    path = tmp_path / "s.json5"
    path.write_text("{\n  // comment\n  server: { port: 4000, },\n}\n", encoding="utf-8")

    assert loadSettingsFile(path) == {"server": {"port": 4000}}



def test_loadSettingsFile_missingOrBroken(tmp_path: Path) -> None:
    assert loadSettingsFile(tmp_path / "nope.json5") == {}
    with pytest.raises(FileNotFoundError):
        loadSettingsFile(tmp_path / "nope.json5", required=True)

    broken = tmp_path / "broken.json5"
    broken.write_text("{ server: ", encoding="utf-8")
    assert loadSettingsFile(broken) == {}
    with pytest.raises(ValueError):
        loadSettingsFile(broken, required=True)



def test_loadSettings_fromEnvPath(tmp_path: Path) -> None:
    path = tmp_path / "user.json5"
    path.write_text("{ dots: { coalesceMs: 10 } }", encoding="utf-8")

    tree = loadSettings(env={SETTINGS_ENV: str(path)})

    assert settingsValue(tree, "dots.coalesceMs") == 10
    assert settingsValue(tree, "dots.emptyPollMs") == DEFAULT_SETTINGS["dots"]["emptyPollMs"]



def test_loadSettings_explicitPathMustExist(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        loadSettings(tmp_path / "missing.json5", env={})



def test_settingsAccessors() -> None:
    tree = {"a": {"b": None, "on": "yes", "off": 0}}
    assert settingsValue(tree, "a.b", 7) == 7
    assert settingsValue(tree, "a.missing.deeper", "x") == "x"
    assert settingsBool(tree, "a.on") is True
    assert settingsBool(tree, "a.off", True) is False
    assert settingsBool(tree, "a.b", True) is True


def test_defaultSettings_holdOnlyRealSections() -> None:
    assert set(DEFAULT_SETTINGS) == {"server", "dots", "clients", "generated", "http", "debug"}


# ----------------------------
# Resolution order
# ----------------------------

def test_resolveDotDir_precedence(tmp_path: Path) -> None:
    env = {DOT_DIR_ENV: str(tmp_path / "env")}
    assert resolveDotDir(tmp_path / "cli", env, tmp_path / "settings") == tmp_path / "cli"
    assert resolveDotDir(None, env, tmp_path / "settings") == tmp_path / "env"
    assert resolveDotDir(None, {}, tmp_path / "settings") == tmp_path / "settings"
    assert resolveDotDir(None, {DOT_DIR_ENV: ""}, None) == defaultDotDir()



def test_resolveServerConfig_defaults() -> None:
    config = resolveServerConfig(DEFAULT_SETTINGS, env={})

    assert config.address == "0.0.0.0"
    assert config.port == 3000
    assert config.dotDir == defaultDotDir()
    assert config.coalesceMs == 50
    assert config.clientMaxQueue == 1024
    assert config.webRoot is None
    assert config.devMode is False
    assert config.bindAddress == "0.0.0.0:3000"



def test_resolveServerConfig_cliBeatsSettings(tmp_path: Path) -> None:
    tree = deepMerge(DEFAULT_SETTINGS, {
        "server": {"address": "127.0.0.1", "port": 5000},
        "generated": {"dir": str(tmp_path / "gen")},
        "debug": {"devModeEnabled": True},
    })

    config = resolveServerConfig(tree, env={}, address="::1", port=0, dotDir=tmp_path / "d")

    assert config.address == "::1"
    assert config.port == 0
    assert config.dotDir == tmp_path / "d"
    assert config.svgDir == tmp_path / "gen" / "svg"
    assert config.htmlDir == tmp_path / "gen" / "html"
    assert config.devMode is True



def test_resolveServerConfig_badPort() -> None:
    tree = deepMerge(DEFAULT_SETTINGS, {"server": {"port": 70000}})
    with pytest.raises(ValueError):
        resolveServerConfig(tree, env={})


# ----------------------------
# Directories
# ----------------------------

def test_ensureDirectories_createsAll(tmp_path: Path) -> None:
    config = ServerConfig(dotDir=tmp_path / "a" / "dots", generatedDir=tmp_path / "gen")

    ensureDirectories(config)

    assert config.dotDir.is_dir()
    assert config.svgDir.is_dir()
    assert config.htmlDir.is_dir()



def test_ensureDirectories_failsOnFile(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    config = ServerConfig(dotDir=blocker / "dots", generatedDir=tmp_path / "gen")

    with pytest.raises(DotDirError) as info:
        ensureDirectories(config)
    assert info.value.exitCode == EXIT_DOT_DIR
