"""Notion database client: query recent entries, create pages."""

from datetime import date

import requests

from .config import ConfigMissing
from .log import log
from .retry import with_retry

NOTION_API = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"

# Database column names
PROP_NAME = "名称"
PROP_DATE = "日期"
PROP_ONE_LINER = "一句话简介"
PROP_VALUE = "使用价值"
PROP_AUDIENCE = "用户群体"
PROP_URL = "Github链接"
PROP_TAGS = "标签分类"
PROP_XIAOHONGSHU = "小红书推广文案"
PROP_WECHAT = "公众号推广文案"

TITLE_LIMIT = 100
TEXT_LIMIT = 2000


class StoreError(RuntimeError):
    """Notion answered with an error status."""

    def __init__(self, status: int, message: str):
        self.status = status
        super().__init__(f"Notion API {status}: {message}")


class TransientStoreError(StoreError):
    """Rate limit (429) or server-side (5xx) failure; worth retrying."""


def rich_text(content: str) -> dict:
    return {"rich_text": [{"text": {"content": content[:TEXT_LIMIT]}}]}


def title_text(content: str) -> dict:
    return {"title": [{"text": {"content": content[:TITLE_LIMIT]}}]}


class NotionStore:
    """Thin wrapper over the Notion REST API for a single database."""

    def __init__(self, api_key: str, database_id: str, timeout: float = 30.0):
        if not api_key:
            raise ConfigMissing("NOTION_API_KEY is not set")
        if not database_id:
            raise ConfigMissing("NOTION_DATABASE_ID is not set")
        self.database_id = database_id
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        })

    @classmethod
    def from_config(cls, config) -> "NotionStore":
        return cls(config.notion_api_key, config.notion_database_id, timeout=config.store_timeout)

    def _post(self, path: str, body: dict) -> dict:
        r = self.session.post(f"{NOTION_API}{path}", json=body, timeout=self.timeout)
        if r.status_code >= 400:
            try:
                message = r.json().get("message", r.text)
            except ValueError:
                message = r.text
            error = TransientStoreError if r.status_code == 429 or r.status_code >= 500 else StoreError
            raise error(r.status_code, message[:300])
        return r.json()

    @with_retry(max_retries=2, base_delay=2.0,
                exceptions=(requests.RequestException, TransientStoreError))
    def _query_page(self, body: dict) -> dict:
        return self._post(f"/databases/{self.database_id}/query", body)

    def existing_names(self, since: date) -> set[str]:
        """Titles of every entry dated on or after `since`, across all pages."""
        body = {
            "filter": {"property": PROP_DATE, "date": {"on_or_after": since.isoformat()}},
            "page_size": 100,
        }
        names = set()
        while True:
            result = self._query_page(body)
            for page in result.get("results", []):
                title = page.get("properties", {}).get(PROP_NAME, {}).get("title", [])
                name = "".join(t.get("plain_text", "") for t in title).strip()
                if name:
                    names.add(name)
            if not result.get("has_more"):
                return names
            cursor = result.get("next_cursor")
            if not cursor:
                return names
            body["start_cursor"] = cursor

    def create_page(self, properties: dict) -> str:
        result = self._post("/pages", {
            "parent": {"database_id": self.database_id},
            "properties": properties,
        })
        return result.get("id", "")


def create_database(api_key: str, parent_page_id: str, title: str = "GitHub 热门仓库",
                    timeout: float = 30.0) -> str:
    """Create a database with the columns the writer fills. Returns its id."""
    if not api_key:
        raise ConfigMissing("NOTION_API_KEY is not set")

    schema = {
        PROP_NAME: {"title": {}},
        PROP_DATE: {"date": {}},
        PROP_ONE_LINER: {"rich_text": {}},
        PROP_VALUE: {"rich_text": {}},
        PROP_AUDIENCE: {"rich_text": {}},
        PROP_URL: {"url": {}},
        PROP_TAGS: {"multi_select": {}},
        PROP_XIAOHONGSHU: {"rich_text": {}},
        PROP_WECHAT: {"rich_text": {}},
    }
    r = requests.post(
        f"{NOTION_API}/databases",
        json={
            "parent": {"type": "page_id", "page_id": parent_page_id},
            "title": [{"type": "text", "text": {"content": title}}],
            "properties": schema,
        },
        headers={
            "Authorization": f"Bearer {api_key}",
            "Notion-Version": NOTION_VERSION,
        },
        timeout=timeout,
    )
    if r.status_code >= 400:
        raise StoreError(r.status_code, r.text[:300])
    database_id = r.json()["id"]
    log(f"Created Notion database: {database_id}")
    return database_id
