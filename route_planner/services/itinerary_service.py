import asyncio
import logging
from typing import AsyncIterator

import httpx

from route_planner.config import Settings
from route_planner.errors import StreamingUnsupported, UpstreamError
from route_planner.llm.openrouter_client import OpenRouterClient
from route_planner.prompts.itinerary_prompt import build_itinerary_messages
from route_planner.schemas.itinerary_schema import PlanRequest, PlanResponse
from route_planner.services.response_parser import parse_plan_response

logger = logging.getLogger(__name__)


class ItineraryService:
    """Runs the plan pipeline for both delivery modes. Holds no per-request state."""

    def __init__(self, completion_client: OpenRouterClient, settings: Settings):
        self._client = completion_client
        self._settings = settings

    # ------------------------------------------------------------------
    # 🚀 Buffered: prompt → completion → sanitize/parse
    # ------------------------------------------------------------------
    async def build_plan(self, request: PlanRequest) -> PlanResponse:
        prompt = build_itinerary_messages(request)
        try:
            response_text = await self._client.complete(prompt)
        except UpstreamError as e:
            logger.error("OpenRouter API error: %s", e)
            raise

        plan = parse_plan_response(response_text)
        logger.info(
            "Planned %d day(s) %s -> %s: estimated spend %.2f of budget %.2f",
            len(plan.days), request.source, request.destination,
            plan.total_expenses(), request.budget,
        )
        return plan

    # ------------------------------------------------------------------
    # 📡 Streaming: prompt → open upstream stream → relay data: lines
    # ------------------------------------------------------------------
    async def open_plan_stream(self, request: PlanRequest) -> AsyncIterator[str]:
        """
        Open the upstream stream and return the relay iterator.
        Everything that can fail before response headers go out fails here,
        so the caller can still answer with a structured error.
        """
        if not self._settings.STREAMING_ENABLED:
            raise StreamingUnsupported("Streaming not supported!")

        prompt = build_itinerary_messages(request)
        try:
            upstream = await self._client.open_stream(prompt)
        except UpstreamError as e:
            logger.error("OpenRouter Stream API error: %s", e)
            raise

        return relay_stream(upstream, self._settings.STREAM_DEADLINE_SECONDS)


async def relay_stream(upstream: httpx.Response, deadline_seconds: float) -> AsyncIterator[str]:
    """
    Forward upstream lines starting with ``data:`` as SSE frames, one yield
    per line. Ends on upstream exhaustion, read error or the overall deadline;
    the upstream response is closed in every case, including cancellation
    when the client disconnects.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + deadline_seconds
    lines = upstream.aiter_lines()
    forwarded = 0
    try:
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning("Stream deadline of %gs reached; closing relay", deadline_seconds)
                break
            try:
                line = await asyncio.wait_for(lines.__anext__(), timeout=remaining)
            except StopAsyncIteration:
                break
            except asyncio.TimeoutError:
                logger.warning("Stream deadline of %gs reached; closing relay", deadline_seconds)
                break
            except httpx.HTTPError as e:
                logger.error("Error reading stream from OpenRouter: %s", e)
                break

            if line.startswith("data:"):
                forwarded += 1
                yield f"{line}\n\n"
    finally:
        await upstream.aclose()
        logger.debug("Stream relay closed after %d frame(s)", forwarded)
