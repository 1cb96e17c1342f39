# -------------------------------------------------------------
# Route Planner — FastAPI Entrypoint
# -------------------------------------------------------------
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from route_planner.api.itinerary_router import router as itinerary_router
from route_planner.config import Settings, load_settings
from route_planner.errors import PlannerError
from route_planner.llm.openrouter_client import OpenRouterClient, build_http_client
from route_planner.services.itinerary_service import ItineraryService

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Quiet noisy libraries
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# -------------------------------------------------------------
# Application factory
# -------------------------------------------------------------
def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Build the app with its process-wide dependencies.
    Both are created here (once) unless injected; a missing provider
    credential raises MissingCredentialError and the process does not start.
    """
    settings = settings or load_settings()
    configure_logging(settings.LOG_LEVEL)
    http_client = http_client or build_http_client(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Route planner ready (env=%s, model=%s, upstream=%s)",
            settings.ENV, settings.OPENROUTER_MODEL, settings.OPENROUTER_API_URL,
        )
        yield
        await http_client.aclose()
        logger.info("Outbound HTTP client closed")

    app = FastAPI(
        title="Route Planner",
        description="LLM-backed day-wise travel itinerary gateway",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.itinerary_service = ItineraryService(
        OpenRouterClient(http_client, settings), settings
    )

    # CORS on every response; preflight answered here with no body
    @app.middleware("http")
    async def apply_cors(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)
        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=500,
                content={"error": f"Internal server error: {e}", "kind": PlannerError.kind},
                headers=CORS_HEADERS,
            )
        response.headers.update(CORS_HEADERS)
        return response

    # Map planner errors → {"error": "...", "kind": "..."}
    @app.exception_handler(PlannerError)
    async def planner_error_handler(request: Request, exc: PlannerError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    app.include_router(itinerary_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


if __name__ == "__main__":
    import uvicorn

    _settings = load_settings()
    uvicorn.run(create_app(_settings), host=_settings.HOST, port=_settings.PORT)
