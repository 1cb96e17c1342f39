from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from route_planner.schemas.itinerary_schema import ErrorResponse, PlanResponse, parse_plan_request
from route_planner.services.itinerary_service import ItineraryService

router = APIRouter(prefix="/api", tags=["Itinerary"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid plan request"},
    500: {"model": ErrorResponse, "description": "Upstream or parse failure"},
}

SSE_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def get_itinerary_service(request: Request) -> ItineraryService:
    return request.app.state.itinerary_service


@router.post("/route", response_model=PlanResponse, responses=_ERROR_RESPONSES)
async def create_route(
    request: Request,
    service: ItineraryService = Depends(get_itinerary_service),
):
    """
    Generate a day-wise itinerary and return it once the model has finished.
    Failures surface as {"error": ...} with 400 (bad input) or 500 (upstream/parse).
    """
    plan_request = parse_plan_request(await request.body())
    return await service.build_plan(plan_request)


@router.post("/route-stream", responses=_ERROR_RESPONSES)
async def create_route_stream(
    request: Request,
    service: ItineraryService = Depends(get_itinerary_service),
):
    """
    Relay the model's output as server-sent events while it is generated.
    The caller reassembles the streamed chunks and parses the final text.
    """
    plan_request = parse_plan_request(await request.body())
    frames = await service.open_plan_stream(plan_request)
    return StreamingResponse(frames, media_type="text/event-stream", headers=SSE_HEADERS)
