"""End-to-end run: catalog -> cache -> format -> reap -> lock file.

HTTP is served by respx; the Wasm decoder is replaced by FakeDecoder.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import httpx
import pytest
import respx
from conftest import PLUGIN_URL, FakeDecoder

from plugcache.domain.plugins import ArtifactFetchError, CatalogValidationError
from plugcache.infrastructure.config import AppConfig
from plugcache.infrastructure.lockfile import LOCK_FILE_NAME, compute_content_hash
from plugcache.infrastructure.plugins import derive_artifact_name
from plugcache.interfaces.composition import run_format

pytestmark = pytest.mark.integration

_CATALOG_URL = "https://catalog.example.test/info.json"
_SECOND_URL = "https://x/z.wasm"


def _plugin(url: str, config_key: str, extensions: list[str]) -> dict[str, Any]:
    return {
        "name": f"dprint-plugin-{config_key}",
        "version": "1.0.0",
        "url": url,
        "configKey": config_key,
        "fileExtensions": extensions,
        "configSchemaUrl": "",
        "configExcludes": [],
    }


def _catalog(*plugins: dict[str, Any]) -> dict[str, Any]:
    return {"schemaVersion": 2, "pluginSystemSchemaVersion": 3, "latest": list(plugins)}


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    (root / "data.json").write_text('{"a": 1}   \n\n', encoding="utf-8")
    (root / "README.md").write_text("# title\n", encoding="utf-8")
    return root


@pytest.fixture()
def config(project: Path) -> AppConfig:
    return AppConfig(
        cache_dir=project / ".dprint-cache",
        catalog_url=_CATALOG_URL,
        http_max_retries=0,
    )


def _read_lock(config: AppConfig) -> dict[str, Any]:
    return json.loads((config.cache_dir / LOCK_FILE_NAME).read_text(encoding="utf-8"))


class TestSinglePluginScenario:
    @respx.mock
    async def test_empty_cache_fetches_once_and_records(
        self, project: Path, config: AppConfig
    ) -> None:
        respx.get(_CATALOG_URL).respond(
            200, json=_catalog(_plugin(PLUGIN_URL, "json", ["json"]))
        )
        artifact_route = respx.get(PLUGIN_URL).respond(200, content=b"wasm-bytes")

        report = await run_format(config, root=project, decoder=FakeDecoder())

        assert artifact_route.call_count == 1
        assert report.formatted == [project / "data.json"]
        assert (project / "data.json").read_text(encoding="utf-8") == '{"a": 1}\n'

        lock = _read_lock(config)
        assert list(lock) == [PLUGIN_URL]
        entry = lock[PLUGIN_URL]
        assert re.fullmatch(r"[0-9a-f]{128}", entry["sha512"])
        assert entry["sha512"] == compute_content_hash(b"wasm-bytes")
        assert entry["fileName"] == derive_artifact_name(PLUGIN_URL)

        assert sorted(p.name for p in config.cache_dir.iterdir()) == sorted(
            [entry["fileName"], LOCK_FILE_NAME]
        )

    @respx.mock
    async def test_second_run_uses_cache(
        self, project: Path, config: AppConfig
    ) -> None:
        respx.get(_CATALOG_URL).respond(
            200, json=_catalog(_plugin(PLUGIN_URL, "json", ["json"]))
        )
        artifact_route = respx.get(PLUGIN_URL).respond(200, content=b"wasm-bytes")

        await run_format(config, root=project, decoder=FakeDecoder())
        first_lock = _read_lock(config)
        report = await run_format(config, root=project, decoder=FakeDecoder())

        assert artifact_route.call_count == 1
        assert report.checked == [project / "data.json"]
        assert _read_lock(config) == first_lock

    @respx.mock
    async def test_tampered_artifact_is_replaced(
        self, project: Path, config: AppConfig
    ) -> None:
        respx.get(_CATALOG_URL).respond(
            200, json=_catalog(_plugin(PLUGIN_URL, "json", ["json"]))
        )
        artifact_route = respx.get(PLUGIN_URL).respond(200, content=b"wasm-bytes")

        await run_format(config, root=project, decoder=FakeDecoder())
        artifact = config.cache_dir / derive_artifact_name(PLUGIN_URL)
        artifact.write_bytes(b"tampered")
        await run_format(config, root=project, decoder=FakeDecoder())

        assert artifact_route.call_count == 2
        assert artifact.read_bytes() == b"wasm-bytes"
        assert _read_lock(config)[PLUGIN_URL]["sha512"] == compute_content_hash(
            b"wasm-bytes"
        )

    @respx.mock
    async def test_corrupted_lock_file_recovers(
        self, project: Path, config: AppConfig
    ) -> None:
        respx.get(_CATALOG_URL).respond(
            200, json=_catalog(_plugin(PLUGIN_URL, "json", ["json"]))
        )
        respx.get(PLUGIN_URL).respond(200, content=b"wasm-bytes")
        config.cache_dir.mkdir()
        (config.cache_dir / LOCK_FILE_NAME).write_text('{"broken', encoding="utf-8")

        await run_format(config, root=project, decoder=FakeDecoder())

        assert PLUGIN_URL in _read_lock(config)

    @respx.mock
    async def test_unreferenced_cache_files_are_reaped(
        self, project: Path, config: AppConfig
    ) -> None:
        respx.get(_CATALOG_URL).respond(
            200, json=_catalog(_plugin(PLUGIN_URL, "json", ["json"]))
        )
        respx.get(PLUGIN_URL).respond(200, content=b"wasm-bytes")
        config.cache_dir.mkdir()
        (config.cache_dir / "0000000000000000-old.wasm").write_bytes(b"old")
        (config.cache_dir / "partial-download").mkdir()

        await run_format(config, root=project, decoder=FakeDecoder())

        assert sorted(p.name for p in config.cache_dir.iterdir()) == sorted(
            [derive_artifact_name(PLUGIN_URL), LOCK_FILE_NAME]
        )

    @respx.mock
    async def test_entries_outside_catalog_are_kept(
        self, project: Path, config: AppConfig
    ) -> None:
        catalog_route = respx.get(_CATALOG_URL)
        catalog_route.side_effect = [
            httpx.Response(
                200,
                json=_catalog(
                    _plugin(PLUGIN_URL, "json", ["json"]),
                    _plugin(_SECOND_URL, "markdown", ["md"]),
                ),
            ),
            httpx.Response(200, json=_catalog(_plugin(PLUGIN_URL, "json", ["json"]))),
        ]
        respx.get(PLUGIN_URL).respond(200, content=b"wasm-bytes")
        respx.get(_SECOND_URL).respond(200, content=b"markdown-bytes")

        await run_format(config, root=project, decoder=FakeDecoder())
        await run_format(config, root=project, decoder=FakeDecoder())

        # The lock file still names it, so the reaper keeps its artifact.
        assert set(_read_lock(config)) == {PLUGIN_URL, _SECOND_URL}
        assert (config.cache_dir / derive_artifact_name(_SECOND_URL)).exists()

    @respx.mock
    async def test_dry_run_still_maintains_cache(
        self, project: Path, config: AppConfig
    ) -> None:
        respx.get(_CATALOG_URL).respond(
            200, json=_catalog(_plugin(PLUGIN_URL, "json", ["json"]))
        )
        respx.get(PLUGIN_URL).respond(200, content=b"wasm-bytes")

        report = await run_format(
            config, root=project, dry_run=True, decoder=FakeDecoder()
        )

        assert report.formatted == [project / "data.json"]
        assert (project / "data.json").read_text(encoding="utf-8") == '{"a": 1}   \n\n'
        assert PLUGIN_URL in _read_lock(config)


class TestFailurePolicies:
    @respx.mock
    async def test_abort_policy_fails_run(
        self, project: Path, config: AppConfig
    ) -> None:
        respx.get(_CATALOG_URL).respond(
            200,
            json=_catalog(
                _plugin(PLUGIN_URL, "json", ["json"]),
                _plugin(_SECOND_URL, "markdown", ["md"]),
            ),
        )
        respx.get(PLUGIN_URL).respond(200, content=b"wasm-bytes")
        respx.get(_SECOND_URL).respond(404)

        with pytest.raises(ArtifactFetchError):
            await run_format(config, root=project, decoder=FakeDecoder())

        assert (project / "data.json").read_text(encoding="utf-8") == '{"a": 1}   \n\n'

    @respx.mock
    async def test_skip_policy_formats_with_remaining_plugins(
        self, project: Path, config: AppConfig
    ) -> None:
        config = config.model_copy(update={"fetch_failure_policy": "skip"})
        respx.get(_CATALOG_URL).respond(
            200,
            json=_catalog(
                _plugin(PLUGIN_URL, "json", ["json"]),
                _plugin(_SECOND_URL, "markdown", ["md"]),
            ),
        )
        respx.get(PLUGIN_URL).respond(200, content=b"wasm-bytes")
        respx.get(_SECOND_URL).respond(404)

        report = await run_format(config, root=project, decoder=FakeDecoder())

        assert report.formatted == [project / "data.json"]
        assert list(_read_lock(config)) == [PLUGIN_URL]

    @respx.mock
    async def test_skip_policy_purges_tampered_artifact_that_cannot_be_refetched(
        self, project: Path, config: AppConfig
    ) -> None:
        config = config.model_copy(update={"fetch_failure_policy": "skip"})
        respx.get(_CATALOG_URL).respond(
            200, json=_catalog(_plugin(PLUGIN_URL, "json", ["json"]))
        )
        respx.get(PLUGIN_URL).mock(
            side_effect=[
                httpx.Response(200, content=b"wasm-bytes"),
                httpx.Response(404),
            ]
        )

        await run_format(config, root=project, decoder=FakeDecoder())
        artifact = config.cache_dir / derive_artifact_name(PLUGIN_URL)
        artifact.write_bytes(b"tampered")
        await run_format(config, root=project, decoder=FakeDecoder())

        assert _read_lock(config) == {}
        assert not artifact.exists()

    @respx.mock
    async def test_invalid_catalog_fails_run(
        self, project: Path, config: AppConfig
    ) -> None:
        respx.get(_CATALOG_URL).respond(200, json={"schemaVersion": 1})

        with pytest.raises(CatalogValidationError):
            await run_format(config, root=project, decoder=FakeDecoder())
