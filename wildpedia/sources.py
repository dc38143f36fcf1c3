"""
sources.py
======================

カタログデータの一括取得元。

- FileDataSource  : data/ ディレクトリの JSON をイベントループ外で読む
- HttpDataSource  : 静的ホスティングされた JSON を httpx で取得する
- StaticDataSource: メモリ上の dict をそのまま返す（組み込み・テスト用）

どのソースも fetch(name) で 1 ドキュメントを返し、
存在しない / 取得できない / JSON として壊れている場合は DataSourceError を送出する。
致命か劣化かの判断は CatalogStore 側で行う。
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

from .errors import DataSourceError

logger = logging.getLogger(__name__)

# ソース名 → ファイル名
SOURCE_FILES: Dict[str, str] = {
    "animals": "animals.json",
    "categories": "categories.json",
    "habitats": "habitats.json",
    "senses": "senses.json",
    "records": "records.json",
    "conservation": "conservation.json",
    "human_relations": "human-relations.json",
    "ecosystem_roles": "ecosystem-roles.json",
}

REQUIRED_SOURCES = ("animals", "categories")
OPTIONAL_SOURCES = tuple(name for name in SOURCE_FILES if name not in REQUIRED_SOURCES)


def _file_name(name: str) -> str:
    try:
        return SOURCE_FILES[name]
    except KeyError:
        raise DataSourceError(name, "未知のデータソースです") from None


class DataSource(Protocol):
    async def fetch(self, name: str) -> Any:
        ...


class FileDataSource:
    """ローカルディレクトリから JSON を読む。"""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    async def fetch(self, name: str) -> Any:
        path = self.base_dir / _file_name(name)
        return await asyncio.to_thread(self._read, name, path)

    @staticmethod
    def _read(name: str, path: Path) -> Any:
        try:
            if not path.exists():
                raise DataSourceError(name, f"ファイルが見つかりません: {path}")
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise DataSourceError(name, f"{path} を読み込めません: {e}") from e


class HttpDataSource:
    """
    base_url 配下の JSON を取得する。

    transport はテストで httpx.MockTransport を差し込むためのもの。
    リトライは行わない（必要なら呼び出し側で重ねる）。
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, name: str) -> Any:
        url = self.base_url + _file_name(name)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(url)
                response.raise_for_status()
                return response.json()
            except (httpx.RequestError, httpx.HTTPStatusError, httpx.InvalidURL) as e:
                raise DataSourceError(name, f"{url} の取得に失敗しました: {e}") from e
            except ValueError as e:
                raise DataSourceError(name, f"{url} は JSON ではありません: {e}") from e


class StaticDataSource:
    """メモリ上のドキュメントを返す。呼び出し側の dict は共有しない。"""

    def __init__(self, payloads: Mapping[str, Any]):
        self.payloads = dict(payloads)

    async def fetch(self, name: str) -> Any:
        _file_name(name)
        if name not in self.payloads:
            raise DataSourceError(name, "ドキュメントが提供されていません")
        return copy.deepcopy(self.payloads[name])


def source_from_config(config: Any) -> DataSource:
    """AppConfig から使うデータソースを決める。URL があれば HTTP、無ければファイル。"""
    if config.data_base_url:
        logger.info(f"Using HTTP data source: {config.data_base_url}")
        return HttpDataSource(config.data_base_url, timeout=config.http_timeout)
    logger.info(f"Using file data source: {config.data_dir}")
    return FileDataSource(config.data_dir)
