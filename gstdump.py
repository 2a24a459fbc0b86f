# gstdump.py
# Prepare a clean dot dump directory, point GStreamer at it and run a command.
from __future__ import annotations
import fnmatch
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

import platformdirs
import psutil

DOT_DIR_ENV = "GST_DEBUG_DUMP_DOT_DIR"
DOT_DIR_NAME = "gstreamer-dots"
STALE_PATTERN = "*.dot*"

EXIT_DIR_FAILED = 1
EXIT_SPAWN_FAILED = 127



def resolveDumpDir(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    envDir = env.get(DOT_DIR_ENV)
    if envDir:
        return Path(envDir).expanduser()
    return Path(platformdirs.user_cache_dir()) / DOT_DIR_NAME



def removeStaleDots(dumpDir: Path) -> list[Path]:
    """Delete regular files matching *.dot* directly in dumpDir. Errors are reported and skipped."""
    removed: list[Path] = []
    for path in sorted(dumpDir.iterdir()):
        if not fnmatch.fnmatch(path.name, STALE_PATTERN) or not path.is_file():
            continue
        try:
            path.unlink()
        except OSError as e:
            print(f"Error removing {path}: {e}", file=sys.stderr)
            continue
        removed.append(path)
    return removed



def killProcessTree(proc: psutil.Popen) -> None:
    try:
        for child in proc.children(recursive=True):
            try:
                child.kill()
            except psutil.NoSuchProcess:
                pass
        proc.kill()
    except psutil.NoSuchProcess:
        pass



def runCommand(args: Sequence[str], env: Mapping[str, str]) -> int:
    print(f"Running {list(args)}", file=sys.stderr)
    try:
        proc = psutil.Popen(list(args), env=dict(env))
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_SPAWN_FAILED

    try:
        return proc.wait()
    except KeyboardInterrupt:
        print(f"Interrupted, stopping PID {proc.pid} and its children...", file=sys.stderr)
        killProcessTree(proc)
        proc.wait()
        return 130



def main(argv: Sequence[str] | None = None, env: Mapping[str, str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    childEnv = dict(os.environ if env is None else env)

    dumpDir = resolveDumpDir(childEnv)
    try:
        dumpDir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"Failed to create dot directory {dumpDir}: {e}", file=sys.stderr)
        return EXIT_DIR_FAILED

    print(f"Dumping GStreamer pipelines into {dumpDir}")
    removeStaleDots(dumpDir)

    childEnv[DOT_DIR_ENV] = str(dumpDir)
    if not args:
        return 0
    return runCommand(args, childEnv)



if __name__ == "__main__":
    sys.exit(main())
