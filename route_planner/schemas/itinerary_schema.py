import math
import re
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError, field_validator

from route_planner.errors import InvalidRequest


# ============================================================
# 🎒 Plan Request (input schema)
# ============================================================
class PlanRequest(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra="ignore")

    source: str = Field(..., min_length=1, strict=True)
    destination: str = Field(..., min_length=1, strict=True)
    budget: float = Field(..., gt=0, strict=True, allow_inf_nan=False)


def parse_plan_request(raw: Union[bytes, str]) -> PlanRequest:
    """
    Decode and validate an inbound request body.
    Raises InvalidRequest for undecodable bodies, empty source/destination,
    or a budget that is not a finite number > 0.
    """
    try:
        return PlanRequest.model_validate_json(raw or b"")
    except ValidationError as exc:
        errors = exc.errors()
        if any(err["type"] in ("json_invalid", "model_type") for err in errors):
            raise InvalidRequest(f"Invalid request body: {errors[0]['msg']}") from exc
        fields = sorted({str(err["loc"][0]) for err in errors if err.get("loc")})
        raise InvalidRequest(
            "Source, destination, and a positive budget are required"
            + (f" (invalid: {', '.join(fields)})" if fields else "")
        ) from exc


# ============================================================
# 🧾 Tagged unions for loosely-typed model output
# ============================================================
# activities: free text or an ordered list of text items
TextOrList = Union[StrictStr, List[StrictStr]]
# expense amount: a number, or text the model did not write as a number
NumberOrText = Union[int, float, str]

_NUMERIC_TEXT = re.compile(r"^[+-]?(\d{1,3}(,\d{3})+|\d+)(\.\d+)?$|^[+-]?\.\d+$")


def coerce_number_or_text(value: Any) -> NumberOrText:
    """
    Numbers pass through, numeric-looking text ("1,500", " 250.5 ") becomes a
    number, any other text is kept verbatim. Everything else is rejected.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("expense amount must be a number or text")
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("expense amount must be finite")
        return value
    if isinstance(value, str):
        text = value.strip()
        if _NUMERIC_TEXT.match(text):
            cleaned = text.replace(",", "")
            number = float(cleaned)
            return int(number) if "." not in cleaned else number
        return value
    raise ValueError("expense amount must be a number or text")


# ============================================================
# 📅 Daily Plan (Day-wise structure)
# ============================================================
class DayPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: int = Field(..., ge=1)
    activities: TextOrList
    expenses: Dict[str, NumberOrText] = Field(default_factory=dict)

    @field_validator("expenses", mode="before")
    @classmethod
    def _coerce_expenses(cls, v):
        if not isinstance(v, dict):
            raise ValueError("expenses must be an object of category -> amount")
        return {str(k): coerce_number_or_text(amount) for k, amount in v.items()}

    def total_expenses(self) -> float:
        return float(sum(v for v in self.expenses.values() if not isinstance(v, str)))


# ============================================================
# 🧳 Plan Response (itinerary document)
# ============================================================
class PlanResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    destination: str
    budget: float = Field(..., allow_inf_nan=False)
    days: List[DayPlan]

    def total_expenses(self) -> float:
        return sum(day.total_expenses() for day in self.days)


class ErrorResponse(BaseModel):
    error: str
    kind: str = "planner_error"
