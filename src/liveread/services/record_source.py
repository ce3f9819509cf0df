"""Upstream record source: PostgREST polling plus a background poller."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Protocol

import httpx
from pydantic import ValidationError

from liveread.config import Settings
from liveread.schemas.records import RawRecord

logger = logging.getLogger(__name__)

RecordHandler = Callable[[RawRecord], Awaitable[object]]


class RecordSourceError(RuntimeError):
    """Raised when the latest record cannot be fetched or parsed."""


class RecordSource(Protocol):
    async def fetch_latest(self) -> Optional[RawRecord]: ...


class PostgrestRecordSource:
    """
    Fetch the most recent row of the source table over the PostgREST API.

    The row is selected by ``updated_at`` descending, limited to one.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if settings.supabase_url is None:
            raise ValueError("SUPABASE_URL is required for the record source")
        self._base_url = str(settings.supabase_url).rstrip("/")
        self._table = settings.source_table
        api_key = (
            settings.supabase_key.get_secret_value() if settings.supabase_key else ""
        )
        self._headers = {"Accept": "application/json"}
        if api_key:
            self._headers["apikey"] = api_key
            self._headers["Authorization"] = f"Bearer {api_key}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=settings.source_timeout_seconds)

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/rest/v1/{self._table}"

    async def fetch_latest(self) -> Optional[RawRecord]:
        params = {"select": "*", "order": "updated_at.desc", "limit": "1"}
        try:
            response = await self._client.get(
                self.endpoint, params=params, headers=self._headers
            )
            response.raise_for_status()
            rows = response.json()
        except httpx.HTTPError as e:
            raise RecordSourceError(f"Fetching latest record failed: {e}") from e
        except ValueError as e:
            raise RecordSourceError(f"Record source returned invalid JSON: {e}") from e

        if not isinstance(rows, list):
            raise RecordSourceError(f"Expected a list of rows, got {type(rows).__name__}")
        if not rows:
            return None
        try:
            return RawRecord.model_validate(rows[0])
        except ValidationError as e:
            raise RecordSourceError(f"Malformed record: {e}") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class RecordPoller:
    """Fetch the latest record immediately, then on a fixed interval."""

    def __init__(self, source: RecordSource, handler: RecordHandler, interval: float):
        self._source = source
        self._handler = handler
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def poll_once(self) -> bool:
        """One tick. Failures are logged and retried on the next tick."""
        try:
            record = await self._source.fetch_latest()
        except RecordSourceError as e:
            logger.warning(f"Poll failed: {e}")
            return False
        if record is None:
            return False
        try:
            await self._handler(record)
        except Exception as e:
            logger.error(f"Record handler failed for {record.id}: {e}", exc_info=True)
            return False
        return True

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Poll tick failed: {e}", exc_info=True)
            await asyncio.sleep(self._interval)


__all__ = ["PostgrestRecordSource", "RecordPoller", "RecordSource", "RecordSourceError"]
