import asyncio
import hashlib

import httpx
import pytest
import pytest_asyncio

from jczaddons.addons.manager import AddonManager
from jczaddons.addons.notifications import AddonListener
from jczaddons.addons.types import RemoteDescriptor
from jczaddons.addons.updater import RefreshOutcome
from jczaddons.addons.user_settings import FileAddonSettings
from jczaddons.core.errors import AddonAlreadyInstalledError, AddonNotRemovableError

URL = "https://example.invalid/artworks/classic.zip"


class EventLog(AddonListener):
    """Records events together with the registry state seen at that moment."""

    def __init__(self, manager):
        self.manager = manager
        self.events = []

    def addonsLoaded(self):
        self.events.append(("addonsLoaded", sorted(self.manager.registry.ids())))

    def hasBaseline(self, present):
        self.events.append(("hasBaseline", present))

    def changed(self):
        self.events.append(("changed", sorted(self.manager.registry.ids())))


@pytest.fixture()
def baseline_payload(tmp_path, make_addon, make_archive):
    source = make_addon(tmp_path / "remote" / "classic", version=4, artworks={"classic": {}})
    return make_archive(source, tmp_path / "remote.zip").read_bytes()


@pytest_asyncio.fixture()
async def manager_factory(tmp_path, addon_paths, baseline_payload):
    clients: list[httpx.AsyncClient] = []
    requests: list[httpx.Request] = []

    def build(*, userAddons=(), status=200):
        remote = RemoteDescriptor(url=URL, version=4, sha256=hashlib.sha256(baseline_payload).hexdigest())

        def handler(request):
            requests.append(request)
            return httpx.Response(status, content=baseline_payload)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        prefs = FileAddonSettings(tmp_path / "prefs.json5")
        if userAddons:
            prefs.update(userAddons=list(userAddons))
        manager = AddonManager(
            paths=addon_paths,
            settings=prefs,
            appVersion="5.7.0",
            remotes={"classic": remote},
            client=client,
        )
        log = EventLog(manager)
        manager.subscribe(log)
        return manager, log, prefs

    build.requests = requests
    yield build
    for client in clients:
        await client.aclose()


@pytest.mark.asyncio
async def test_load_downloads_missing_baseline(manager_factory, make_addon, addon_paths):
    make_addon(addon_paths.addons / "tunnel", version=2)
    manager, log, _prefs = manager_factory()

    registry = await manager.loadAddons()

    assert manager.lastRefresh is RefreshOutcome.UPDATED
    assert registry is manager.registry
    assert [addon.id for addon in registry] == ["classic", "tunnel"]
    assert registry.hasBaseline()
    assert log.events == [("addonsLoaded", ["classic", "tunnel"]), ("hasBaseline", True)]
    assert len(manager_factory.requests) == 1

    # Second pass finds a current baseline and does not download again
    log.events.clear()
    await manager.loadAddons()
    assert manager.lastRefresh is RefreshOutcome.SKIPPED
    assert len(manager_factory.requests) == 1
    assert log.events == [("addonsLoaded", ["classic", "tunnel"]), ("hasBaseline", True)]


@pytest.mark.asyncio
async def test_load_without_network_reports_missing_baseline(manager_factory):
    manager, log, _prefs = manager_factory(status=500)
    registry = await manager.loadAddons()
    assert manager.lastRefresh is RefreshOutcome.DOWNLOAD_FAILED
    assert len(registry) == 0
    assert log.events == [("addonsLoaded", []), ("hasBaseline", False)]
    assert manager.findMissingAddons({"classic": 4}) == ["classic"]


@pytest.mark.asyncio
async def test_install_enables_artworks_and_notifies_after_commit(tmp_path, manager_factory, make_addon, make_archive):
    manager, log, prefs = manager_factory()
    await manager.loadAddons()
    log.events.clear()

    archive = make_archive(
        make_addon(tmp_path / "src" / "tunnel", version=2, artworks={"tunnel-art": {}}), tmp_path / "tunnel.zip"
    )
    addon = await manager.installFromArchive(archive)

    assert addon.id == "tunnel"
    assert "tunnel" in manager.registry
    assert log.events == [("changed", ["classic", "tunnel"])]
    assert prefs.enabledArtworks == frozenset({"tunnel/tunnel-art"})
    assert manager.findMissingAddons({"tunnel": 2, "castle": 1}) == ["castle"]
    assert manager.findMissingAddons({"tunnel": 3}) == ["tunnel (requires v3)"]

    with pytest.raises(AddonAlreadyInstalledError):
        await manager.installFromArchive(archive)
    assert log.events == [("changed", ["classic", "tunnel"])]


@pytest.mark.asyncio
async def test_uninstall_disables_artworks(tmp_path, manager_factory, make_addon, make_archive):
    manager, log, prefs = manager_factory()
    await manager.loadAddons()
    archive = make_archive(
        make_addon(tmp_path / "src" / "tunnel", version=2, artworks={"tunnel-art": {}}), tmp_path / "tunnel.zip"
    )
    addon = await manager.installFromArchive(archive)
    prefs.update(enabledArtworks=prefs.enabledArtworks | {"classic/classic"})
    log.events.clear()

    await manager.uninstall(addon)

    assert "tunnel" not in manager.registry
    assert not addon.folder.exists()
    assert prefs.enabledArtworks == frozenset({"classic/classic"})
    assert log.events == [("changed", ["classic"])]

    with pytest.raises(LookupError):
        await manager.uninstall("tunnel")


@pytest.mark.asyncio
async def test_baseline_and_user_registered_addons_cannot_be_uninstalled(tmp_path, manager_factory, make_addon):
    registered = make_addon(tmp_path / "mine" / "castle", version=1)
    manager, log, _prefs = manager_factory(userAddons=[str(registered)])
    await manager.loadAddons()
    log.events.clear()

    with pytest.raises(AddonNotRemovableError):
        await manager.uninstall("classic")
    with pytest.raises(AddonNotRemovableError):
        await manager.uninstall("castle")

    assert registered.is_dir()
    assert {"classic", "castle"} <= manager.registry.ids()
    assert log.events == []


@pytest.mark.asyncio
async def test_operations_are_serialized(tmp_path, manager_factory, make_addon, make_archive):
    manager, log, _prefs = manager_factory()
    archive = make_archive(make_addon(tmp_path / "src" / "tunnel"), tmp_path / "tunnel.zip")

    await asyncio.gather(manager.loadAddons(), manager.installFromArchive(archive))

    assert {"classic", "tunnel"} <= manager.registry.ids()
    assert [name for name, *_ in log.events] == ["addonsLoaded", "hasBaseline", "changed"]


@pytest.mark.asyncio
async def test_manual_baseline_install_reports_has_baseline(tmp_path, manager_factory, make_addon, make_archive):
    manager, log, _prefs = manager_factory(status=503)
    await manager.loadAddons()
    assert log.events == [("addonsLoaded", []), ("hasBaseline", False)]
    log.events.clear()

    archive = make_archive(make_addon(tmp_path / "src" / "classic", version=4), tmp_path / "classic.zip")
    await manager.installFromArchive(archive)

    assert manager.registry.hasBaseline()
    assert log.events == [("hasBaseline", True), ("changed", ["classic"])]


@pytest.mark.asyncio
async def test_load_survives_failed_baseline_swap(monkeypatch, manager_factory, make_addon, addon_paths):
    make_addon(addon_paths.addons / "classic", version=3)
    manager, log, _prefs = manager_factory()

    def no_space(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr("jczaddons.addons.updater.shutil.move", no_space)
    registry = await manager.loadAddons()

    assert manager.lastRefresh is RefreshOutcome.EXTRACT_FAILED
    assert registry.get("classic").version == 3
    assert (addon_paths.addons / "classic").is_dir()
    assert log.events == [("addonsLoaded", ["classic"]), ("hasBaseline", True)]
