from pathlib import Path

from gstdots.dots.cleanup import cleanupGenerated
from gstdots.dots.store import SnapshotStore



def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("<svg/>", encoding="utf-8")
    return path



def test_removesOrphansKeepsLive(store: SnapshotStore, writeDotFile, tmp_path: Path) -> None:
    writeDotFile("live.dot")
    writeDotFile("nested/deep.dot")
    svgDir = tmp_path / "gen" / "svg"
    htmlDir = tmp_path / "gen" / "html"
    keepSvg = _touch(svgDir / "live.svg")
    keepNested = _touch(svgDir / "deep.svg")
    orphanSvg = _touch(svgDir / "gone.svg")
    orphanHtml = _touch(htmlDir / "gone.html")
    keepHtml = _touch(htmlDir / "live.html")

    removed = cleanupGenerated(store, {"svg": svgDir, "html": htmlDir})

    assert sorted(removed) == sorted([orphanSvg, orphanHtml])
    assert keepSvg.exists() and keepNested.exists() and keepHtml.exists()
    assert not orphanSvg.exists() and not orphanHtml.exists()



def test_ignoresOtherExtensionsAndMissingDirs(store: SnapshotStore, tmp_path: Path) -> None:
    svgDir = tmp_path / "svg"
    other = _touch(svgDir / "notes.txt")

    removed = cleanupGenerated(store, {"svg": svgDir, "html": tmp_path / "missing"})

    assert removed == []
    assert other.exists()



def test_emptyDotDir_removesEverything(store: SnapshotStore, tmp_path: Path) -> None:
    svgDir = tmp_path / "svg"
    paths = [_touch(svgDir / f"p{i}.svg") for i in range(3)]

    assert sorted(cleanupGenerated(store, {"svg": svgDir})) == paths
