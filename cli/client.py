"""HTTP client for the reelchat API."""

import logging

import httpx

from .config import CLIConfig

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Raised when the server answers with a non-200 status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code


class ChatAPIClient:
    """Client for the chat start / ask endpoints."""

    def __init__(self, config: CLIConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self.client = httpx.AsyncClient(timeout=config.timeout, transport=transport)

    async def _check(self, response: httpx.Response) -> httpx.Response:
        logger.debug("Response status: %s", response.status_code)
        if response.status_code != 200:
            raise APIError(response.status_code, response.text)
        return response

    async def start(self) -> str:
        """Start a chat and return its id."""
        response = await self._check(await self.client.get(self.config.start_url))
        return response.json()["ChatId"]

    async def ask(self, chat_id: str, text: str) -> dict:
        """Send one message; returns the decoded ``{FunnyFact, Messages}`` body."""
        response = await self._check(
            await self.client.post(self.config.ask_url(chat_id), json={"Input": text})
        )
        return response.json()

    async def close(self) -> None:
        await self.client.aclose()
