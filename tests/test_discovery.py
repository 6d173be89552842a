"""
Tests for startup discovery of installed mods.
"""

import json

import pytest

from modbridge.mods.discovery import ModDiscovery, parse_listing
from modbridge.mods.errors import DiscoveryParseError
from modbridge.remote.port import RemoteFiles

from conftest import manifest_dict


def persist(device, layout, mod_id, **kwargs):
    device.put(layout.manifest_path(mod_id), json.dumps(manifest_dict(mod_id, **kwargs)))


class TestParseListing:
    """Tests for the ls -R output parser."""

    def test_strips_header_and_trailer(self):
        raw = "/sdcard/QuestPatcher/app/installedMods:\r\na.json\r\nb.json\r\n"
        assert parse_listing(raw) == ["a.json", "b.json"]

    def test_empty_directory(self):
        assert parse_listing("/sdcard/mods:\r\n") == []
        assert parse_listing("") == []

    def test_without_header(self):
        """Entries survive even if the transport omits the header line."""
        assert parse_listing("a.json\nb.json") == ["a.json", "b.json"]

    def test_rejects_malformed_entries(self):
        raw = "\n".join([
            "/dir:",
            "good.json",
            "notes.txt",
            ".hidden.json",
            "",
        ])
        assert parse_listing(raw) == ["good.json"]

    def test_ignores_subdirectory_blocks(self):
        raw = "/m:\r\na.json\r\nsub\r\n\r\n/m/sub:\r\nx.json\r\n"
        assert parse_listing(raw) == ["a.json"]

    def test_ignores_subdirectory_blocks_without_header(self):
        assert parse_listing("a.json\nsub\n\n/m/sub:\nx.json\n") == ["a.json"]


class TestDiscovery:
    """Tests for ModDiscovery.load_all."""

    @pytest.mark.asyncio
    async def test_creates_directories(self, device, layout, registry):
        discovery = ModDiscovery(RemoteFiles(device), layout, registry)

        result = await discovery.load_all()

        assert result.manifests == []
        assert result.ok
        for directory in (layout.manifests_dir, layout.mods_dir, layout.libs_dir):
            assert directory in device.dirs

    @pytest.mark.asyncio
    async def test_ensure_directories_idempotent(self, device, layout, registry):
        discovery = ModDiscovery(RemoteFiles(device), layout, registry)
        persist(device, layout, "a")

        await discovery.ensure_directories()
        dirs_after_first = set(device.dirs)
        await discovery.ensure_directories()

        assert device.dirs == dirs_after_first
        assert device.listdir(layout.manifests_dir) == ["a.json"]

    @pytest.mark.asyncio
    async def test_loads_persisted_manifests(self, device, layout, registry):
        persist(device, layout, "a", library_files=["x.so"])
        persist(device, layout, "b", mod_files=["b.so"])

        result = await ModDiscovery(RemoteFiles(device), layout, registry).load_all()

        assert [m.id for m in result.manifests] == ["a", "b"]
        assert registry.get("a").library_files == ("x.so",)
        assert registry.get("b").mod_files == ("b.so",)

    @pytest.mark.asyncio
    async def test_corrupt_manifest_is_skipped(self, device, layout, registry):
        """One corrupt manifest among three valid ones is reported, not fatal."""
        persist(device, layout, "a")
        persist(device, layout, "b")
        device.put(layout.manifest_path("broken"), "{this is not json")
        persist(device, layout, "c")

        result = await ModDiscovery(RemoteFiles(device), layout, registry).load_all()

        assert sorted(registry.ids()) == ["a", "b", "c"]
        assert len(result.errors) == 1
        error = result.errors[0]
        assert isinstance(error, DiscoveryParseError)
        assert error.path == layout.manifest_path("broken")
        assert not result.ok

    @pytest.mark.asyncio
    async def test_unreadable_manifest_is_skipped(self, device, layout, registry):
        persist(device, layout, "a")
        persist(device, layout, "b")
        device.fail_reads.add(layout.manifest_path("a"))

        result = await ModDiscovery(RemoteFiles(device), layout, registry).load_all()

        assert registry.ids() == ["b"]
        assert [e.path for e in result.errors] == [layout.manifest_path("a")]

    @pytest.mark.asyncio
    async def test_manifest_in_subdirectory_not_loaded(self, device, layout, registry):
        persist(device, layout, "a")
        device.put(f"{layout.manifests_dir}/backup/b.json", json.dumps(manifest_dict("b")))

        result = await ModDiscovery(RemoteFiles(device), layout, registry).load_all()

        assert registry.ids() == ["a"]
        assert result.ok
        assert ["cat", f"{layout.manifests_dir}/b.json"] not in device.commands

    @pytest.mark.asyncio
    async def test_id_mismatch_is_reported(self, device, layout, registry):
        device.put(layout.manifest_path("renamed"), json.dumps(manifest_dict("real-id")))

        result = await ModDiscovery(RemoteFiles(device), layout, registry).load_all()

        assert len(registry) == 0
        assert [e.path for e in result.errors] == [layout.manifest_path("renamed")]
        assert "real-id" in str(result.errors[0])

    @pytest.mark.asyncio
    async def test_uses_only_command_vocabulary(self, device, layout, registry):
        persist(device, layout, "a")

        await ModDiscovery(RemoteFiles(device), layout, registry).load_all()

        assert {c[0] for c in device.commands} == {"mkdir", "ls", "cat"}
        assert device.mutations == []
