from pathlib import Path

import psutil
import pytest

import gstdump



class FakeProc:
    def __init__(self, args, env, code: int = 0):
        self.args = args
        self.env = env
        self.code = code
        self.pid = 4242

    def wait(self) -> int:
        return self.code



def test_resolveDumpDir(tmp_path: Path) -> None:
    assert gstdump.resolveDumpDir({gstdump.DOT_DIR_ENV: str(tmp_path)}) == tmp_path
    assert gstdump.resolveDumpDir({}).name == gstdump.DOT_DIR_NAME



def test_removeStaleDots_onlyTopLevelDotFiles(tmp_path: Path) -> None:
    stale = [tmp_path / "a.dot", tmp_path / "b.dot.svg"]
    for path in stale:
        path.write_text("x", encoding="utf-8")
    keep = tmp_path / "notes.txt"
    keep.write_text("x", encoding="utf-8")
    nested = tmp_path / "sub.dot"
    nested.mkdir()
    (nested / "c.dot").write_text("x", encoding="utf-8")

    removed = gstdump.removeStaleDots(tmp_path)

    assert removed == sorted(stale)
    assert keep.exists()
    assert (nested / "c.dot").exists()



def test_main_noCommand_preparesDir(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    dumpDir = tmp_path / "dumps"
    dumpDir.mkdir()
    (dumpDir / "old.dot").write_text("x", encoding="utf-8")

    assert gstdump.main([], env={gstdump.DOT_DIR_ENV: str(dumpDir)}) == 0

    assert not (dumpDir / "old.dot").exists()
    assert str(dumpDir) in capsys.readouterr().out



def test_main_runsCommandWithDumpDir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    spawned: list[FakeProc] = []

    def fakePopen(args, env):
        proc = FakeProc(args, env, code=3)
        spawned.append(proc)
        return proc

    monkeypatch.setattr(psutil, "Popen", fakePopen)
    dumpDir = tmp_path / "new" / "dumps"

    code = gstdump.main(["gst-launch-1.0", "fakesrc", "!", "fakesink"], env={"PATH": "/usr/bin", gstdump.DOT_DIR_ENV: str(dumpDir)})

    assert code == 3
    assert dumpDir.is_dir()
    [proc] = spawned
    assert proc.args == ["gst-launch-1.0", "fakesrc", "!", "fakesink"]
    assert proc.env[gstdump.DOT_DIR_ENV] == str(dumpDir)
    assert proc.env["PATH"] == "/usr/bin"



def test_main_spawnFailure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def failingPopen(args, env):
        raise FileNotFoundError(2, "No such file or directory", args[0])

    monkeypatch.setattr(psutil, "Popen", failingPopen)

    assert gstdump.main(["does-not-exist"], env={gstdump.DOT_DIR_ENV: str(tmp_path)}) == gstdump.EXIT_SPAWN_FAILED



def test_main_unusableDumpDir(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")

    assert gstdump.main([], env={gstdump.DOT_DIR_ENV: str(blocker / "dumps")}) == gstdump.EXIT_DIR_FAILED
