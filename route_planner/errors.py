# -------------------------------------------------------------
# Planner error taxonomy
# -------------------------------------------------------------
# Each stage converts its own failures into one of these kinds;
# the API layer maps them to {"error": ..., "kind": ...} bodies.


class PlannerError(Exception):
    kind: str = "planner_error"
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class InvalidRequest(PlannerError):
    kind = "invalid_request"
    status_code = 400


class UpstreamError(PlannerError):
    """Base for failures talking to the LLM provider."""

    kind = "upstream_error"


class UpstreamTransportError(UpstreamError):
    """Network failure, timeout or non-success status from the provider."""

    kind = "upstream_transport"


class UpstreamEnvelopeError(UpstreamError):
    """Provider answered with success but the choice list is empty or unreadable."""

    kind = "upstream_envelope"


class MalformedUpstreamOutput(PlannerError):
    """The model replied, but its text holds no decodable itinerary."""

    kind = "malformed_upstream_output"


class StreamingUnsupported(PlannerError):
    kind = "streaming_unsupported"


class MissingCredentialError(RuntimeError):
    """Raised at startup when the provider API key is not configured."""
