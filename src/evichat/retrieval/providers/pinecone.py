import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from ...config import DEFAULT_ASSISTANT_NAME, DEFAULT_RETRIEVAL_BASE_URL, DEFAULT_RETRIEVAL_MODEL
from ...ndjson import iter_json_lines
from ...prompts import render_retrieval_question
from ..base import RetrievalProvider
from ..models import AssistantChatRequest, AssistantMessage

logger = logging.getLogger(__name__)


def _message_content(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    message = data.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


class PineconeAssistantProvider(RetrievalProvider):
    """Pinecone Assistant implementation over httpx.

    Hidden design decisions:
    - Endpoint layout ({base_url}/assistant/chat/{assistant_name})
    - Api-Key header authentication
    - Response field extraction (message.content)
    - Failure-to-None conversion
    """

    def __init__(
        self,
        api_key: str,
        assistant_name: str = DEFAULT_ASSISTANT_NAME,
        base_url: str = DEFAULT_RETRIEVAL_BASE_URL,
        model: str = DEFAULT_RETRIEVAL_MODEL,
        timeout: float = 30.0,
        **client_kwargs: Any
    ):
        """Initialize the Pinecone assistant client.

        Args:
            api_key: Pinecone API key
            assistant_name: Name of the assistant to chat with
            base_url: Data-plane base URL of the deployment
            model: Model the assistant should answer with
            timeout: Request timeout in seconds
            **client_kwargs: Additional kwargs for httpx.AsyncClient
        """
        self._assistant_name = assistant_name
        self._model = model
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Api-Key": api_key, "Content-Type": "application/json"},
            timeout=timeout,
            **client_kwargs
        )

    @property
    def assistant_name(self) -> str:
        return self._assistant_name

    @property
    def _path(self) -> str:
        return f"/assistant/chat/{self._assistant_name}"

    def _body(self, prompt: str, stream: bool) -> dict[str, Any]:
        request = AssistantChatRequest(
            messages=[AssistantMessage(role="user", content=prompt)],
            stream=stream,
            model=self._model,
        )
        return request.model_dump()

    async def query(self, question: str) -> str | None:
        return await self.query_raw(render_retrieval_question(question))

    async def query_raw(self, prompt: str) -> str | None:
        try:
            response = await self._client.post(self._path, json=self._body(prompt, stream=False))
        except httpx.HTTPError as e:
            logger.warning("Error querying assistant: %s", e)
            return None

        if response.status_code != 200:
            logger.warning(
                "Assistant API error: %s - %.200s", response.status_code, response.text
            )
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("Assistant returned a non-JSON body")
            return None

        content = _message_content(data)
        if content is None:
            logger.warning("Assistant response has no message.content")
        return content

    def query_stream(self, question: str) -> AsyncIterator[str]:
        return self._stream_generator(render_retrieval_question(question))

    async def _stream_generator(self, prompt: str) -> AsyncIterator[str]:
        """Internal generator that yields content fragments."""
        try:
            async with self._client.stream(
                "POST", self._path, json=self._body(prompt, stream=True)
            ) as response:
                if response.status_code != 200:
                    logger.warning("Assistant stream error: %s", response.status_code)
                    return
                async for data in iter_json_lines(response):
                    content = _message_content(data)
                    if content:
                        yield content
        except httpx.HTTPError as e:
            logger.warning("Error streaming from assistant: %s", e)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
