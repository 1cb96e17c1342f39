from typing import List, NamedTuple

from langchain_core.prompts import ChatPromptTemplate

from route_planner.models.completion_models import ChatMessage
from route_planner.schemas.itinerary_schema import PlanRequest

SYSTEM_INSTRUCTION = (
    "You are a professional travel planner AI assistant. "
    "You ONLY respond with valid JSON."
)

itinerary_prompt = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_INSTRUCTION),
    ("human", """
Plan a detailed travel itinerary from {source} to {destination} with a strict budget of INR {budget}.
The plan must be day-wise, including specific activities and estimated expenses for each day.

Your entire response must be a single, valid JSON object following this exact structure
(double curly braces are intentional):
{{"source": "{source}", "destination": "{destination}", "budget": {budget}, "days": [{{"day": 1, "activities": "...", "expenses": {{"category": amount}}}}]}}

DO NOT include any text, explanations, markdown code blocks, or formatting outside of this JSON object.
Respond ONLY with the raw JSON.
""".strip()),
])


class PlannerPrompt(NamedTuple):
    system: str
    user: str

    def as_messages(self) -> List[ChatMessage]:
        return [
            ChatMessage(role="system", content=self.system),
            ChatMessage(role="user", content=self.user),
        ]


def build_itinerary_messages(request: PlanRequest) -> PlannerPrompt:
    """Render the system and user instructions for one plan request (pure)."""
    messages = itinerary_prompt.format_messages(
        source=request.source,
        destination=request.destination,
        budget=f"{request.budget:.2f}",
    )
    system, user = messages
    return PlannerPrompt(system=system.content, user=user.content)
