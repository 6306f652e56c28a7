"""Tests for tool argument models and their generated schemas."""

import pytest
from pydantic import ValidationError

from ksef_mcp.tools.models import (
    ActiveSessionsArgs,
    InvoiceExportArgs,
    InvoiceMetadataArgs,
    NoArguments,
    OnlineSessionArgs,
    SubmitInvoiceArgs,
    TerminateSessionArgs,
)

_DATE_RANGE = {"dateType": "Issue", "from": "2025-01-01T00:00:00Z"}
_ENCRYPTION = {"encryptedSymmetricKey": "a2V5", "initializationVector": "aXY="}


class TestValidation:
    def test_defaults_applied(self) -> None:
        args = ActiveSessionsArgs.model_validate({})
        assert args.page_size == 10
        assert args.continuation_token is None

    def test_camel_case_input(self) -> None:
        args = ActiveSessionsArgs.model_validate({"pageSize": 25, "continuationToken": "t"})
        assert (args.page_size, args.continuation_token) == (25, "t")

    @pytest.mark.parametrize("size", [9, 101, 500])
    def test_page_size_out_of_range_rejected(self, size: int) -> None:
        with pytest.raises(ValidationError):
            ActiveSessionsArgs.model_validate({"pageSize": size})

    @pytest.mark.parametrize("size", [10, 100])
    def test_page_size_bounds_inclusive(self, size: int) -> None:
        assert ActiveSessionsArgs.model_validate({"pageSize": size}).page_size == size

    def test_string_page_size_not_coerced(self) -> None:
        with pytest.raises(ValidationError):
            ActiveSessionsArgs.model_validate({"pageSize": "20"})

    def test_number_reference_not_coerced(self) -> None:
        with pytest.raises(ValidationError):
            TerminateSessionArgs.model_validate({"referenceNumber": 123})

    def test_empty_reference_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TerminateSessionArgs.model_validate({"referenceNumber": ""})

    def test_extra_fields_ignored(self) -> None:
        args = TerminateSessionArgs.model_validate({"referenceNumber": "R", "unexpected": 1})
        assert args.reference_number == "R"
        assert NoArguments.model_validate({"anything": True}) == NoArguments()

    def test_snake_case_names_not_accepted(self) -> None:
        assert ActiveSessionsArgs.model_validate({"page_size": 50}).page_size == 10
        with pytest.raises(ValidationError) as exc_info:
            TerminateSessionArgs.model_validate({"reference_number": "R"})
        assert exc_info.value.errors()[0]["loc"] == ("referenceNumber",)

    def test_date_range_requires_from_alias(self) -> None:
        with pytest.raises(ValidationError):
            InvoiceMetadataArgs.model_validate(
                {"subjectType": "Subject1", "dateRange": {"dateType": "Issue", "from_": "2025-01-01"}}
            )

    def test_non_ascii_continuation_token_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            ActiveSessionsArgs.model_validate({"continuationToken": "zażółć"})
        assert exc_info.value.errors()[0]["loc"] == ("continuationToken",)
        token = "eyJ0b2tlbiI6IjEyMyJ9"
        assert ActiveSessionsArgs.model_validate({"continuationToken": token}).continuation_token == token

    def test_subject_type_enum(self) -> None:
        with pytest.raises(ValidationError):
            InvoiceMetadataArgs.model_validate({"subjectType": "Buyer", "dateRange": _DATE_RANGE})

    def test_metadata_filters_exclude_paging(self) -> None:
        args = InvoiceMetadataArgs.model_validate(
            {
                "subjectType": "Subject2",
                "dateRange": _DATE_RANGE,
                "sellerNip": "5265877635",
                "pageSize": 30,
            }
        )
        assert args.filters() == {
            "subjectType": "Subject2",
            "dateRange": _DATE_RANGE,
            "sellerNip": "5265877635",
        }
        assert (args.page_size, args.page_offset) == (30, 0)

    def test_export_body(self) -> None:
        payload = {
            "encryption": _ENCRYPTION,
            "filters": {"subjectType": "Subject1", "dateRange": _DATE_RANGE},
        }
        assert InvoiceExportArgs.model_validate(payload).body() == payload

    def test_export_nested_enum_checked(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            InvoiceExportArgs.model_validate(
                {
                    "encryption": _ENCRYPTION,
                    "filters": {"subjectType": "Nobody", "dateRange": _DATE_RANGE},
                }
            )
        assert exc_info.value.errors()[0]["loc"] == ("filters", "subjectType")

    def test_online_session_body_optional(self) -> None:
        assert OnlineSessionArgs.model_validate({}).body() is None
        body = OnlineSessionArgs.model_validate({"encryption": _ENCRYPTION}).body()
        assert body == {"encryption": _ENCRYPTION}


class TestInputSchema:
    def test_page_size_constraints(self) -> None:
        schema = ActiveSessionsArgs.input_schema()
        page_size = schema["properties"]["pageSize"]
        assert page_size["type"] == "integer"
        assert page_size["minimum"] == 10
        assert page_size["maximum"] == 100
        assert page_size["default"] == 10
        assert "required" not in schema

    def test_optional_field_is_plain_type(self) -> None:
        token = ActiveSessionsArgs.input_schema()["properties"]["continuationToken"]
        assert token["type"] == "string"
        assert "anyOf" not in token
        assert "default" not in token
        assert token["pattern"] == r"^[\x20-\x7E]*$"

    def test_required_fields_listed(self) -> None:
        schema = SubmitInvoiceArgs.input_schema()
        assert sorted(schema["required"]) == ["invoice", "sessionReferenceNumber"]

    def test_no_titles_or_refs(self) -> None:
        text = str(InvoiceExportArgs.input_schema())
        assert "$ref" not in text
        assert "$defs" not in text
        assert "'title'" not in text

    def test_nested_enum_inlined(self) -> None:
        schema = InvoiceMetadataArgs.input_schema()
        assert schema["properties"]["subjectType"]["enum"] == [
            "Subject1",
            "Subject2",
            "Subject3",
            "SubjectAuthorized",
        ]
        date_range = schema["properties"]["dateRange"]
        assert date_range["type"] == "object"
        assert sorted(date_range["required"]) == ["dateType", "from"]

    def test_no_arguments_schema(self) -> None:
        assert NoArguments.input_schema() == {"type": "object", "properties": {}}

    def test_required_fields_helper_matches_schema(self) -> None:
        for model in (SubmitInvoiceArgs, InvoiceMetadataArgs, ActiveSessionsArgs):
            assert sorted(model.required_fields()) == sorted(
                model.input_schema().get("required", [])
            )
