"""データソース（ファイル / HTTP / 静的）のテスト。"""

import json
from pathlib import Path

import httpx
import pytest

from wildpedia.config import AppConfig
from wildpedia.errors import DataSourceError
from wildpedia.sources import (
    OPTIONAL_SOURCES,
    REQUIRED_SOURCES,
    SOURCE_FILES,
    FileDataSource,
    HttpDataSource,
    StaticDataSource,
    source_from_config,
)


class TestSourceNames:
    """ソース名とファイル名の対応。"""

    def test_required_and_optional_cover_all_sources(self):
        assert set(REQUIRED_SOURCES) | set(OPTIONAL_SOURCES) == set(SOURCE_FILES)
        assert REQUIRED_SOURCES == ("animals", "categories")
        assert SOURCE_FILES["human_relations"] == "human-relations.json"


class TestFileDataSource:
    """ローカル JSON の読み込み。"""

    @pytest.mark.asyncio
    async def test_fetch_reads_json(self, tmp_path):
        (tmp_path / "animals.json").write_text(json.dumps([{"id": "fox"}]), encoding="utf-8")

        assert await FileDataSource(tmp_path).fetch("animals") == [{"id": "fox"}]

    @pytest.mark.asyncio
    async def test_missing_file_raises(self, tmp_path):
        with pytest.raises(DataSourceError) as exc_info:
            await FileDataSource(tmp_path).fetch("habitats")

        assert exc_info.value.source == "habitats"

    @pytest.mark.asyncio
    async def test_unreadable_directory_raises(self, tmp_path, monkeypatch):
        exists = Path.exists

        def denied(self):
            if self.parent == tmp_path:
                raise PermissionError(13, "Permission denied")
            return exists(self)

        monkeypatch.setattr(Path, "exists", denied)

        with pytest.raises(DataSourceError) as exc_info:
            await FileDataSource(tmp_path).fetch("senses")

        assert exc_info.value.source == "senses"

    @pytest.mark.asyncio
    async def test_broken_json_raises(self, tmp_path):
        (tmp_path / "records.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(DataSourceError):
            await FileDataSource(tmp_path).fetch("records")

    @pytest.mark.asyncio
    async def test_unknown_source_name_raises(self, tmp_path):
        with pytest.raises(DataSourceError):
            await FileDataSource(tmp_path).fetch("dinosaurs")


class TestHttpDataSource:
    """httpx 経由の取得（MockTransport で差し替え）。"""

    @pytest.mark.asyncio
    async def test_fetch_builds_url_from_base(self):
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, json=[{"id": "forest"}])

        source = HttpDataSource(
            "https://example.org/data", transport=httpx.MockTransport(handler)
        )

        assert await source.fetch("habitats") == [{"id": "forest"}]
        assert requested == ["https://example.org/data/habitats.json"]

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        source = HttpDataSource(
            "https://example.org/data/",
            transport=httpx.MockTransport(lambda request: httpx.Response(404)),
        )

        with pytest.raises(DataSourceError) as exc_info:
            await source.fetch("senses")

        assert exc_info.value.source == "senses"

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self):
        source = HttpDataSource(
            "https://example.org/data/",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>")),
        )

        with pytest.raises(DataSourceError):
            await source.fetch("animals")

    @pytest.mark.asyncio
    async def test_connection_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        source = HttpDataSource("https://example.org/", transport=httpx.MockTransport(handler))

        with pytest.raises(DataSourceError):
            await source.fetch("categories")


class TestStaticDataSource:
    """メモリ上のドキュメント。"""

    @pytest.mark.asyncio
    async def test_returns_copy(self):
        payload = {"animals": [{"id": "fox"}]}
        source = StaticDataSource(payload)

        data = await source.fetch("animals")
        data.append({"id": "wolf"})

        assert await source.fetch("animals") == [{"id": "fox"}]

    @pytest.mark.asyncio
    async def test_missing_document_raises(self):
        with pytest.raises(DataSourceError):
            await StaticDataSource({}).fetch("senses")


class TestSourceFromConfig:
    """AppConfig からのソース選択。"""

    def test_defaults_to_files(self, tmp_path):
        source = source_from_config(AppConfig(data_dir=tmp_path))

        assert isinstance(source, FileDataSource)
        assert source.base_dir == tmp_path

    def test_uses_http_when_base_url_set(self):
        source = source_from_config(AppConfig(data_base_url="https://example.org/data", http_timeout=3.0))

        assert isinstance(source, HttpDataSource)
        assert source.base_url == "https://example.org/data/"
        assert source.timeout == 3.0
