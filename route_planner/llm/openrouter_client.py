"""OpenRouter chat-completion client — buffered and streaming calls over one pooled httpx client."""

import asyncio
import logging

import httpx
from pydantic import ValidationError

from route_planner.config import Settings
from route_planner.errors import UpstreamEnvelopeError, UpstreamTransportError
from route_planner.models.completion_models import ChatCompletionRequest, ChatCompletionResponse
from route_planner.prompts.itinerary_prompt import PlannerPrompt

logger = logging.getLogger(__name__)


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the process-wide pooled client (built once at startup)."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.REQUEST_TIMEOUT_SECONDS),
        limits=httpx.Limits(
            max_connections=settings.HTTP_MAX_CONNECTIONS,
            max_keepalive_connections=settings.HTTP_MAX_KEEPALIVE_CONNECTIONS,
            keepalive_expiry=settings.HTTP_KEEPALIVE_EXPIRY_SECONDS,
        ),
    )


class OpenRouterClient:
    """Single-attempt adapter for the OpenRouter chat-completions endpoint."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings):
        self._http = http_client
        self._settings = settings

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._settings.OPENROUTER_API_KEY}",
            "Content-Type": "application/json",
            "HTTP-Referer": self._settings.OPENROUTER_REFERER,
            "X-Title": self._settings.OPENROUTER_TITLE,
        }

    def _payload(self, prompt: PlannerPrompt, stream: bool) -> dict:
        return ChatCompletionRequest(
            model=self._settings.OPENROUTER_MODEL,
            messages=prompt.as_messages(),
            stream=stream,
        ).model_dump()

    async def complete(self, prompt: PlannerPrompt) -> str:
        """Buffered call: wait for the whole completion and return the first choice's text.

        Raises:
            UpstreamTransportError: timeout, connection failure or non-2xx status.
            UpstreamEnvelopeError: unreadable body, no choices, or empty content.
        """
        try:
            resp = await asyncio.wait_for(
                self._http.post(
                    self._settings.OPENROUTER_API_URL,
                    json=self._payload(prompt, stream=False),
                    headers=self._headers(),
                ),
                timeout=self._settings.REQUEST_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamTransportError(
                f"request to OpenRouter timed out after {self._settings.REQUEST_TIMEOUT_SECONDS:g}s"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamTransportError(f"failed to send request to OpenRouter: {e}") from e

        if not resp.is_success:
            raise UpstreamTransportError(
                f"received non-200 status code ({resp.status_code}): {resp.text}"
            )

        try:
            envelope = ChatCompletionResponse.model_validate_json(resp.content)
        except ValidationError as e:
            raise UpstreamEnvelopeError(f"failed to decode OpenRouter response: {e}") from e

        if not envelope.choices:
            raise UpstreamEnvelopeError("no choices returned from OpenRouter")

        content = envelope.choices[0].message.content
        if not content:
            raise UpstreamEnvelopeError("first choice returned from OpenRouter has no content")
        return content

    async def open_stream(self, prompt: PlannerPrompt) -> httpx.Response:
        """Streaming call: open the connection and check the status only.

        The returned response is unread; the caller relays its lines and must
        close it with ``await response.aclose()``.
        """
        request = self._http.build_request(
            "POST",
            self._settings.OPENROUTER_API_URL,
            json=self._payload(prompt, stream=True),
            headers=self._headers(),
        )
        try:
            resp = await self._http.send(request, stream=True)
        except httpx.HTTPError as e:
            raise UpstreamTransportError(f"failed to send request to OpenRouter: {e}") from e

        if not resp.is_success:
            try:
                body = (await resp.aread()).decode("utf-8", errors="replace")
            except httpx.HTTPError:
                body = ""
            finally:
                await resp.aclose()
            raise UpstreamTransportError(
                f"received non-200 status code ({resp.status_code}): {body}"
            )

        logger.debug("Opened OpenRouter stream (status %s)", resp.status_code)
        return resp
