import logging
import re

from pydantic import ValidationError

from route_planner.errors import MalformedUpstreamOutput
from route_planner.schemas.itinerary_schema import PlanResponse

logger = logging.getLogger(__name__)

# ```json ... ``` (language tag optional); first fenced block wins
_FENCED_BLOCK = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\r?\n?(.*?)```", re.DOTALL)


# ------------------------------------------------------------
# Helper: pull the JSON object span out of a model reply
# ------------------------------------------------------------
def extract_json_block(text: str) -> str:
    """
    Locate the JSON object in a model reply.
    A fenced code block holding braces takes precedence; otherwise (no fence,
    or a fence with no JSON in it) the whole reply is used.
    Within that, the span runs from the first '{' to the last '}'.
    This is textual slicing, not a tokenizer: balanced braces in prose
    outside a fence can still select the wrong span.
    """
    candidate = (text or "").strip()

    fenced = _FENCED_BLOCK.search(candidate)
    if fenced:
        body = fenced.group(1).strip()
        if -1 < body.find("{") < body.rfind("}"):
            candidate = body

    start = candidate.find("{")
    end = candidate.rfind("}")
    if start == -1 or end == -1:
        raise MalformedUpstreamOutput("AI response did not contain a JSON object")
    if end < start:
        raise MalformedUpstreamOutput("AI response braces are out of order")
    return candidate[start:end + 1]


def parse_plan_response(raw_text: str) -> PlanResponse:
    """Turn a raw completion into a PlanResponse, or raise MalformedUpstreamOutput."""
    try:
        json_text = extract_json_block(raw_text)
        return PlanResponse.model_validate_json(json_text)
    except MalformedUpstreamOutput:
        logger.warning("AI response has no JSON object. Raw response:\n%s", raw_text)
        raise
    except ValidationError as e:
        logger.warning(
            "Failed to parse AI response as an itinerary: %s\nRaw response:\n%s",
            e, raw_text,
        )
        raise MalformedUpstreamOutput("AI returned invalid JSON format") from e
