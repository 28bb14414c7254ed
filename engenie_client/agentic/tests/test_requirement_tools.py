"""
Test Suite for requirement and intent helpers
- Collected data flattening and schema merging
- Short-reply classification and command matching

Run with: python -m pytest engenie_client/agentic/tests/test_requirement_tools.py -v
"""
import logging

import pytest

from engenie_client.api import RequirementSchema
from engenie_client.tools import (
    classify_yes_no,
    compose_user_data_string,
    flatten_requirements,
    format_missing_fields,
    is_missing_info_confirmation,
    is_missing_info_decline,
    matches_command,
    merge_requirements_with_schema,
    requirements_only,
    RERUN_COMMANDS,
    SUMMARY_PROCEED_COMMANDS,
)

logger = logging.getLogger(__name__)


# ============================================================================
# TEST 1: COMPOSE USER DATA STRING
# ============================================================================

class TestComposeUserDataString:
    """Flattened natural-language summary of collected data."""

    def test_product_type_first_and_empty_values_skipped(self):
        data = {
            "outputSignal": "4-20mA",
            "productType": "Pressure Transmitter",
            "accuracy": "",
            "housing": None,
        }

        assert compose_user_data_string(data) == "Product Type: Pressure Transmitter. outputSignal: 4-20mA"
        logger.info("[PASS] Product type first test")

    def test_nested_dict_is_flattened(self):
        data = {"mandatoryRequirements": {"range": "0-10 inH2O", "protocols": ["HART", "Modbus"]}}

        assert compose_user_data_string(data) == "range: 0-10 inH2O. protocols: HART, Modbus"

    def test_booleans_and_lists(self):
        data = {"explosionProof": True, "materials": ["316L", "Hastelloy"]}

        assert compose_user_data_string(data) == "explosionProof: true. materials: 316L, Hastelloy"

    def test_empty_data(self):
        assert compose_user_data_string({}) == ""


# ============================================================================
# TEST 2: FLATTEN / MERGE
# ============================================================================

class TestFlattenRequirements:
    """Merging mandatory and optional requirement groups."""

    def test_groups_merged_and_empty_values_dropped(self):
        provided = {
            "mandatoryRequirements": {"outputSignal": "4-20mA", "range": ""},
            "optionalRequirements": {"accuracy": None, "displayType": "LCD"},
            "outputSignal": "should not override",
            "notes": "",
            "application": "steam",
        }

        flat = flatten_requirements(provided)

        assert flat == {"outputSignal": "4-20mA", "displayType": "LCD", "application": "steam"}
        assert all(value not in (None, "") for value in flat.values())
        logger.info("[PASS] Flatten drops empty values test")

    def test_none_input(self):
        assert flatten_requirements(None) == {}
        assert flatten_requirements({}) == {}


class TestMergeRequirementsWithSchema:
    """Every schema key present after merging."""

    @pytest.mark.parametrize("provided", [
        {},
        {"outputSignal": "4-20mA"},
        {"outputSignal": "HART", "customKey": "kept"},
    ])
    def test_contains_schema_and_provided_keys(self, provided):
        schema = RequirementSchema(
            mandatory_requirements={"outputSignal": "", "range": ""},
            optional_requirements={"accuracy": ""},
        )

        merged = merge_requirements_with_schema(provided, schema)

        assert set(schema.all_keys()) <= set(merged)
        assert set(provided) <= set(merged)
        for key, value in provided.items():
            assert merged[key] == value

    def test_missing_keys_default_to_empty_string_and_input_untouched(self):
        provided = {"outputSignal": "4-20mA"}
        schema = RequirementSchema(mandatory_requirements={"range": ""})

        merged = merge_requirements_with_schema(provided, schema)

        assert merged == {"outputSignal": "4-20mA", "range": ""}
        assert provided == {"outputSignal": "4-20mA"}

    def test_no_schema(self):
        assert merge_requirements_with_schema({"a": 1}, None) == {"a": 1}


class TestFormatting:
    """Display formatting helpers."""

    def test_requirements_only(self):
        assert requirements_only({"productType": "Flow Meter", "size": "DN50"}) == {"size": "DN50"}

    def test_format_missing_fields(self):
        assert format_missing_fields(["outputSignal", "accuracy"]) == "Output Signal, Accuracy"
        assert format_missing_fields([]) == ""


# ============================================================================
# TEST 3: SHORT REPLIES / COMMANDS
# ============================================================================

class TestShortReplies:
    """Affirmative/negative classification."""

    @pytest.mark.parametrize("message,expected", [
        ("yes", "yes"),
        ("Yes!", "yes"),
        ("  okay ", "yes"),
        ("nope", "no"),
        ("Skip.", "no"),
        ("yes please add accuracy", None),
        ("what is HART?", None),
        ("", None),
    ])
    def test_classify_yes_no(self, message, expected):
        assert classify_yes_no(message) == expected

    def test_missing_info_confirmation(self):
        for message in ["yes", "Y", "skip", " proceed ", "CONTINUE"]:
            assert is_missing_info_confirmation(message), message
        for message in ["no", "yes please", "okay"]:
            assert not is_missing_info_confirmation(message), message

    def test_missing_info_decline(self):
        for message in ["no", "N", "nope"]:
            assert is_missing_info_decline(message), message
        assert not is_missing_info_decline("skip")
        assert not is_missing_info_decline("no thanks")

    def test_matches_command_substring(self):
        assert matches_command("Please rerun it", RERUN_COMMANDS)
        assert matches_command("Yes, go ahead", SUMMARY_PROCEED_COMMANDS)
        assert not matches_command("change accuracy", RERUN_COMMANDS)

    def test_matches_command_exact(self):
        assert matches_command("Run Again", RERUN_COMMANDS, exact=True)
        assert matches_command("rerun", RERUN_COMMANDS, exact=True)
        assert not matches_command("please rerun", RERUN_COMMANDS, exact=True)
        logger.info("[PASS] Exact command match test")
