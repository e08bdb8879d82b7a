import logging
from datetime import datetime

import httpx

from lesson_caddy.config import settings

logger = logging.getLogger(__name__)


class RemoteSink:
    """Best-effort insert of completed-lesson summaries into a Supabase table.

    Talks to the PostgREST endpoint directly::

        POST {supabase_url}/rest/v1/{table}
        [{"Student": ..., "summary": ..., "date": "<ISO-8601>"}]

    One insert per completed lesson. Failures are logged and reported as
    ``False``; nothing is retried or queued.
    """

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        table: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = (url if url is not None else settings.supabase_url).rstrip("/")
        self.key = key if key is not None else settings.supabase_key
        self.table = table or settings.supabase_table
        self.timeout = timeout or settings.remote_timeout_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.url and self.key)

    async def persist_summary(
        self, student_name: str, summary: str, timestamp: datetime
    ) -> bool:
        if not self.configured:
            logger.warning("Remote sink not configured; summary for %s not sent", student_name)
            return False

        row = {"Student": student_name, "summary": summary, "date": timestamp.isoformat()}
        headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Prefer": "return=minimal",
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.url, timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(f"/rest/v1/{self.table}", json=[row], headers=headers)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Error saving summary to remote sink: %s", e)
            return False

        logger.info("Saved summary for %s to remote sink", student_name)
        return True
