"""
Unit tests for route_planner/services/response_parser.py and the
loosely-typed DayPlan fields it decodes into.
"""
import json
import logging

import pytest

from route_planner.errors import MalformedUpstreamOutput
from route_planner.schemas.itinerary_schema import PlanResponse, coerce_number_or_text
from route_planner.services.response_parser import extract_json_block, parse_plan_response

from conftest import SAMPLE_PLAN

BARE = (
    '{"source":"Delhi","destination":"Goa","budget":20000,'
    '"days":[{"day":1,"activities":"Beach","expenses":{"food":500}}]}'
)


class TestExtractJsonBlock:
    def test_strips_json_fence(self):
        assert extract_json_block("```json\n" + BARE + "\n```") == BARE

    def test_strips_fence_without_language_tag(self):
        assert extract_json_block("```\n" + BARE + "\n```") == BARE

    def test_tolerates_prose_around_object(self):
        text = "Here is your plan:\n" + BARE + "\nHave a great trip!"
        assert extract_json_block(text) == BARE

    def test_fenced_block_takes_precedence_over_prose_braces(self):
        text = 'Format is {"day": n}. Plan:\n```json\n' + BARE + "\n```\nEnjoy {always}."
        assert extract_json_block(text) == BARE

    def test_unterminated_fence_falls_back_to_brace_slicing(self):
        assert extract_json_block("```json\n" + BARE) == BARE

    def test_fence_without_json_falls_back_to_whole_reply(self):
        text = "Example format:\n```\nday -> activities\n```\n" + BARE
        assert extract_json_block(text) == BARE

    def test_no_braces(self):
        with pytest.raises(MalformedUpstreamOutput):
            extract_json_block("Sorry, I cannot help.")

    def test_inverted_braces(self):
        with pytest.raises(MalformedUpstreamOutput):
            extract_json_block("} some text {")

    def test_empty_text(self):
        with pytest.raises(MalformedUpstreamOutput):
            extract_json_block("")


class TestParsePlanResponse:
    def test_fenced_equals_bare(self):
        fenced = "```json\n" + BARE + "\n```"
        assert parse_plan_response(fenced) == PlanResponse.model_validate_json(BARE)

    def test_plan_after_non_json_fence(self):
        text = "Example format:\n```\nday -> activities\n```\n" + json.dumps(SAMPLE_PLAN)
        plan = parse_plan_response(text)
        assert len(plan.days) == len(SAMPLE_PLAN["days"])
        assert plan.destination == "Goa"

    def test_decoded_fields(self):
        plan = parse_plan_response(BARE)
        assert plan.source == "Delhi"
        assert plan.budget == 20000
        assert plan.days[0].day == 1
        assert plan.days[0].activities == "Beach"
        assert plan.days[0].expenses == {"food": 500}

    def test_rejects_apology(self):
        with pytest.raises(MalformedUpstreamOutput):
            parse_plan_response("Sorry, I cannot help.")

    def test_rejects_inverted_braces(self):
        with pytest.raises(MalformedUpstreamOutput):
            parse_plan_response("} some text {")

    def test_rejects_missing_days(self):
        with pytest.raises(MalformedUpstreamOutput) as exc_info:
            parse_plan_response('{"source": "Delhi", "destination": "Goa", "budget": 100}')
        assert exc_info.value.message == "AI returned invalid JSON format"

    def test_rejects_truncated_json(self):
        with pytest.raises(MalformedUpstreamOutput):
            parse_plan_response('{"source": "Delhi", "days": [{"day": 1}')

    def test_rejects_whole_document_on_one_bad_day(self):
        doc = json.loads(BARE)
        doc["days"].append({"day": 2, "activities": "Fort", "expenses": {"food": None}})
        with pytest.raises(MalformedUpstreamOutput):
            parse_plan_response(json.dumps(doc))

    def test_rejects_non_positive_day(self):
        doc = json.loads(BARE)
        doc["days"][0]["day"] = 0
        with pytest.raises(MalformedUpstreamOutput):
            parse_plan_response(json.dumps(doc))

    def test_keeps_day_order_from_model(self):
        doc = json.loads(BARE)
        doc["days"] = [
            {"day": 2, "activities": "b", "expenses": {}},
            {"day": 1, "activities": "a", "expenses": {}},
        ]
        plan = parse_plan_response(json.dumps(doc))
        assert [d.day for d in plan.days] == [2, 1]

    def test_accepts_activity_list(self):
        doc = json.loads(BARE)
        doc["days"][0]["activities"] = ["Beach", "Dinner at Fisherman's Wharf"]
        plan = parse_plan_response(json.dumps(doc))
        assert plan.days[0].activities == ["Beach", "Dinner at Fisherman's Wharf"]

    def test_logs_raw_text_on_failure(self, caplog):
        with caplog.at_level(logging.WARNING, logger="route_planner.services.response_parser"):
            with pytest.raises(MalformedUpstreamOutput):
                parse_plan_response("Sorry, I cannot help.")
        assert "Sorry, I cannot help." in caplog.text

    def test_error_message_does_not_echo_raw_text(self):
        with pytest.raises(MalformedUpstreamOutput) as exc_info:
            parse_plan_response("secret model musings without json")
        assert "musings" not in exc_info.value.message


class TestExpenseCoercion:
    @pytest.mark.parametrize("value,expected", [
        (500, 500),
        (99.5, 99.5),
        ("500", 500),
        (" 1,500 ", 1500),
        ("250.75", 250.75),
        ("approx 300", "approx 300"),
        ("free", "free"),
    ])
    def test_number_or_text(self, value, expected):
        result = coerce_number_or_text(value)
        assert result == expected
        assert type(result) is type(expected)

    @pytest.mark.parametrize("value", [True, None, [1], {"a": 1}, float("nan")])
    def test_rejects_uncoercible(self, value):
        with pytest.raises(ValueError):
            coerce_number_or_text(value)

    def test_totals_use_numeric_amounts_only(self):
        doc = json.loads(BARE)
        doc["days"] = [
            {"day": 1, "activities": "a", "expenses": {"food": 500, "hotel": "1,500", "misc": "varies"}},
            {"day": 2, "activities": "b", "expenses": {"food": "250.5"}},
        ]
        plan = parse_plan_response(json.dumps(doc))
        assert plan.days[0].total_expenses() == 2000.0
        assert plan.total_expenses() == pytest.approx(2250.5)
        assert plan.days[0].expenses["misc"] == "varies"
