import json
import zipfile
from pathlib import Path

import pytest



def write_addon(
    folder: Path,
    *,
    version=1,
    minimum="5.0.0",
    artworks: dict[str, dict] | None = None,
    expansions: list[str] | None = None,
    extra: dict | None = None,
) -> Path:
    """Creates an add-on folder with a jcz-addon.json and optional artwork folders."""
    folder.mkdir(parents=True, exist_ok=True)
    manifest: dict = {}
    if version is not None:
        manifest["version"] = version
    if minimum is not None:
        manifest["minimumJczVersion"] = minimum
    if artworks:
        manifest["artworks"] = list(artworks)
        for name, payload in artworks.items():
            artwork_dir = folder / name
            artwork_dir.mkdir(parents=True, exist_ok=True)
            (artwork_dir / "artwork.json").write_text(json.dumps(payload), encoding="utf-8")
    if expansions:
        manifest["expansions"] = expansions
    if extra:
        manifest.update(extra)
    (folder / "jcz-addon.json").write_text(json.dumps(manifest), encoding="utf-8")
    return folder



def zip_dir(source: Path, archive: Path, *, arc_root: str | None = None) -> Path:
    """Zips `source` so its content sits under `arc_root` (defaults to the folder name)."""
    root = arc_root if arc_root is not None else source.name
    with zipfile.ZipFile(archive, "w") as zf:
        for path in sorted(source.rglob("*")):
            if path.is_file():
                zf.write(path, f"{root}/{path.relative_to(source).as_posix()}")
    return archive



@pytest.fixture()
def addon_paths(tmp_path):
    from jczaddons.app.paths import AddonPaths

    return AddonPaths.build(tmp_path / "userdata")



@pytest.fixture()
def validator():
    from jczaddons.addons.manifest import ManifestValidator

    return ManifestValidator(appVersion="5.7.0", devMode=False)



@pytest.fixture()
def make_addon():
    return write_addon



@pytest.fixture()
def make_archive():
    return zip_dir
