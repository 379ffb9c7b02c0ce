import httpx
import logging
from typing import Optional
from daybook.core.config import settings

logger = logging.getLogger(__name__)

class NotificationError(Exception):
    """A message could not be delivered (blocked chat, rate limit, network error...)."""

class TelegramClient:
    """
    Minimal Telegram Bot API sender used for reminders.
    Retries and backoff are left to the caller's schedule.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.token = token if token is not None else settings.TELEGRAM_BOT_TOKEN
        self.api_url = (api_url or settings.TELEGRAM_API_URL).rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def send_message(self, chat_id: int, text: str) -> dict:
        if not self.token:
            raise NotificationError("TELEGRAM_BOT_TOKEN is not configured")
        if not text or not text.strip():
            raise NotificationError("Refusing to send an empty message")

        url = f"{self.api_url}/bot{self.token}/sendMessage"
        try:
            response = await self._client.post(url, json={"chat_id": chat_id, "text": text})
        except httpx.HTTPError as e:
            raise NotificationError(f"Telegram request failed for chat {chat_id}: {e}") from e

        payload = {}
        try:
            payload = response.json()
        except ValueError:
            pass

        if response.status_code != 200 or not payload.get("ok"):
            description = payload.get("description") or response.text
            raise NotificationError(f"Telegram rejected message to chat {chat_id} ({response.status_code}): {description}")

        return payload.get("result", {})

    async def close(self):
        await self._client.aclose()
