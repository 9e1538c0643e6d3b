import httpx

from app.errors import DependencyError
from app.logging_config import get_logger

logger = get_logger(__name__)

TIMEOUT_CONFIG = httpx.Timeout(
    connect=10.0,
    read=15.0,
    write=10.0,
    pool=15.0
)

LIMITS_CONFIG = httpx.Limits(
    max_keepalive_connections=20,
    max_connections=100,
    keepalive_expiry=30.0
)


def parse_content_range(content_range: str) -> int | None:
    """Достать общее количество из заголовка вида `0-9/42` или `*/42`."""
    if "/" not in content_range:
        return None
    try:
        return int(content_range.split("/")[1])
    except (ValueError, IndexError):
        return None


class SupabaseClient:
    """
    Клиент для работы с Supabase REST API.
    Создаётся явно и передаётся в сервисы через зависимости FastAPI.
    """

    def __init__(self, url: str, key: str) -> None:
        self.api_url = f"{url.rstrip('/')}/rest/v1"
        self.headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation"
        }
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Получить или создать HTTP клиент."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=TIMEOUT_CONFIG,
                limits=LIMITS_CONFIG,
                http2=True
            )
            logger.debug("Created new HTTP client for Supabase")
        return self._client

    async def close(self) -> None:
        """Закрыть HTTP клиент."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            logger.info("Supabase HTTP client closed")

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: dict | list | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        client = await self._get_client()
        try:
            resp = await client.request(
                method,
                f"{self.api_url}/{table}",
                params=params or {},
                headers=headers or self.headers,
                json=json,
            )
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as e:
            logger.error(f"Supabase {method} error: {e.response.status_code} - {e.response.text}")
            raise DependencyError(
                f"Supabase {method} {table} failed with status {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Supabase request error: {e}")
            raise DependencyError(f"Supabase {method} {table} failed: {e}") from e

    async def get(
        self,
        table: str,
        params: dict[str, str] | None = None
    ) -> list[dict]:
        """
        Получить записи из таблицы.

        Args:
            table: Имя таблицы
            params: Параметры запроса (фильтры, сортировка, лимит)

        Returns:
            Список записей
        """
        resp = await self._request("GET", table, params=params)
        return resp.json()

    async def get_all(
        self,
        table: str,
        params: dict[str, str] | None = None,
        page_size: int = 1000
    ) -> list[dict]:
        """
        Получить все записи постранично (PostgREST по умолчанию обрезает выдачу).
        """
        rows: list[dict] = []
        offset = 0
        while True:
            page = await self.get(
                table,
                {**(params or {}), "limit": str(page_size), "offset": str(offset)}
            )
            rows.extend(page)
            if len(page) < page_size:
                return rows
            offset += page_size

    async def count(
        self,
        table: str,
        params: dict[str, str] | None = None
    ) -> int:
        """Количество записей по фильтру (без загрузки самих записей)."""
        headers = {**self.headers, "Prefer": "count=exact"}
        resp = await self._request("HEAD", table, params=params, headers=headers)
        total = parse_content_range(resp.headers.get("content-range", ""))
        return total or 0

    async def insert(
        self,
        table: str,
        data: dict | list[dict]
    ) -> list[dict]:
        """
        Вставить записи в таблицу.

        Returns:
            Вставленные записи
        """
        payload = data if isinstance(data, list) else [data]
        resp = await self._request("POST", table, json=payload)
        return resp.json()

    async def update(
        self,
        table: str,
        params: dict[str, str],
        data: dict
    ) -> list[dict]:
        """
        Обновить записи в таблице.

        Args:
            table: Имя таблицы
            params: Фильтры для выбора записей
            data: Новые данные

        Returns:
            Обновлённые записи
        """
        resp = await self._request("PATCH", table, params=params, json=data)
        return resp.json()
