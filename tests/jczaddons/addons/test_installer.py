import zipfile

import pytest

from jczaddons.addons.installer import PackageInstaller, safeExtract
from jczaddons.addons.types import OriginFlags
from jczaddons.core.errors import (
    AddonAlreadyInstalledError,
    AddonNotRemovableError,
    AddonValidationError,
    InvalidPackageError,
)
from jczaddons.core.fsutils import RemoveResult


@pytest.fixture()
def installer(validator, addon_paths):
    return PackageInstaller(validator, addon_paths, baselineId="classic")


def _leftover_staging(addon_paths) -> list:
    if not addon_paths.userData.exists():
        return []
    return [entry for entry in addon_paths.userData.iterdir() if entry.name.startswith(".addon-install-")]


def test_install_and_uninstall_round_trip(tmp_path, installer, addon_paths, make_addon, make_archive):
    source = make_addon(tmp_path / "src" / "tunnel", version=2, artworks={"tunnel-art": {"icon": "i.png"}})
    archive = make_archive(source, tmp_path / "tunnel.zip")

    addon = installer.installFromArchive(archive, installedIds=frozenset())

    assert addon.id == "tunnel"
    assert addon.folder == addon_paths.addons / "tunnel"
    assert addon.usable
    assert addon.origin.removable
    assert addon.artworkIds() == ["tunnel/tunnel-art"]
    assert (addon_paths.addons / "tunnel" / "jcz-addon.json").is_file()
    assert _leftover_staging(addon_paths) == []

    assert installer.uninstall(addon) is RemoveResult.REMOVED
    assert not (addon_paths.addons / "tunnel").exists()
    assert installer.uninstall(addon) is RemoveResult.MISSING


def test_archive_must_have_single_root_folder(tmp_path, installer, addon_paths):
    archive = tmp_path / "two.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("a/jcz-addon.json", "{}")
        zf.writestr("b/jcz-addon.json", "{}")

    with pytest.raises(InvalidPackageError):
        installer.installFromArchive(archive, installedIds=frozenset())
    assert not any(addon_paths.addons.iterdir())
    assert _leftover_staging(addon_paths) == []


def test_archive_with_loose_file_at_root_is_rejected(tmp_path, installer):
    archive = tmp_path / "loose.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("jcz-addon.json", '{"version": 1, "minimumJczVersion": "5.0"}')

    with pytest.raises(InvalidPackageError):
        installer.installFromArchive(archive, installedIds=frozenset())


def test_not_a_zip_is_rejected(tmp_path, installer):
    archive = tmp_path / "fake.zip"
    archive.write_bytes(b"definitely not a zip")
    with pytest.raises(InvalidPackageError):
        installer.installFromArchive(archive, installedIds=frozenset())


def test_missing_archive_is_rejected(tmp_path, installer):
    with pytest.raises(InvalidPackageError):
        installer.installFromArchive(tmp_path / "nope.zip", installedIds=frozenset())


def test_folder_without_manifest_is_rejected(tmp_path, installer, addon_paths):
    archive = tmp_path / "plain.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("plain/readme.txt", "hi")
    with pytest.raises(InvalidPackageError):
        installer.installFromArchive(archive, installedIds=frozenset())
    assert not (addon_paths.addons / "plain").exists()


def test_already_installed_by_id(tmp_path, installer, addon_paths, make_addon, make_archive):
    archive = make_archive(make_addon(tmp_path / "src" / "tunnel"), tmp_path / "tunnel.zip")
    with pytest.raises(AddonAlreadyInstalledError) as excinfo:
        installer.installFromArchive(archive, installedIds=frozenset({"tunnel"}))
    assert excinfo.value.addonId == "tunnel"
    assert not (addon_paths.addons / "tunnel").exists()


def test_already_installed_on_disk(tmp_path, installer, addon_paths, make_addon, make_archive):
    make_addon(addon_paths.addons / "tunnel", version=1)
    archive = make_archive(make_addon(tmp_path / "src" / "tunnel", version=7), tmp_path / "tunnel.zip")
    with pytest.raises(AddonAlreadyInstalledError):
        installer.installFromArchive(archive, installedIds=frozenset())
    assert '"version": 1' in (addon_paths.addons / "tunnel" / "jcz-addon.json").read_text()


def test_invalid_manifest_is_not_installed(tmp_path, installer, addon_paths, make_addon, make_archive):
    archive = make_archive(make_addon(tmp_path / "src" / "future", minimum="9.0"), tmp_path / "future.zip")
    with pytest.raises(AddonValidationError) as excinfo:
        installer.installFromArchive(archive, installedIds=frozenset())
    assert excinfo.value.reason == "requires version 9.0 or higher"
    assert not (addon_paths.addons / "future").exists()
    assert _leftover_staging(addon_paths) == []


@pytest.mark.parametrize("member", ["../evil/jcz-addon.json", "/abs/jcz-addon.json", "ok/../../evil.txt"])
def test_zip_slip_is_rejected(tmp_path, member):
    archive = tmp_path / "slip.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr(member, "x")
    destination = tmp_path / "out"
    destination.mkdir()

    with pytest.raises(InvalidPackageError):
        safeExtract(archive, destination)
    assert not (tmp_path / "evil").exists()
    assert not (tmp_path / "evil.txt").exists()
    assert list(destination.iterdir()) == []


def test_uninstall_refuses_non_removable(installer, tmp_path, make_addon, validator):
    folder = make_addon(tmp_path / "bundled" / "classic", version=4)
    addon = validator.readAddon("classic", folder, OriginFlags(removable=False, hidden=True))
    with pytest.raises(AddonNotRemovableError):
        installer.uninstall(addon)
    assert folder.exists()


@pytest.mark.parametrize(
    "error",
    [RuntimeError("File 'a' is encrypted, password required for extraction"), NotImplementedError("That compression method is not supported")],
)
def test_unextractable_archive_is_rejected(monkeypatch, tmp_path, installer, addon_paths, make_addon, make_archive, error):
    archive = make_archive(make_addon(tmp_path / "src" / "tunnel"), tmp_path / "tunnel.zip")

    def fail(self, *args, **kwargs):
        raise error

    monkeypatch.setattr(zipfile.ZipFile, "extractall", fail)
    with pytest.raises(InvalidPackageError, match="cannot be extracted"):
        installer.installFromArchive(archive, installedIds=frozenset())
    assert not (addon_paths.addons / "tunnel").exists()
    assert _leftover_staging(addon_paths) == []
