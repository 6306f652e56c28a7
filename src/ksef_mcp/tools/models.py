"""Tool argument models.

Each tool declares its accepted arguments as a pydantic model. The model is
the single source of truth: it validates the loosely-typed ``arguments``
object of a ``tools/call`` and produces the ``inputSchema`` advertised by
``tools/list``.

Scalars are strict (no ``"10"`` -> ``10`` coercion), unknown keys are
ignored, and only the camelCase spelling of the KSeF API is accepted.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr
from pydantic.alias_generators import to_camel
from pydantic.json_schema import GenerateJsonSchema, JsonSchemaValue
from pydantic_core import core_schema

SubjectType = Literal["Subject1", "Subject2", "Subject3", "SubjectAuthorized"]
DateType = Literal["Issue", "Invoicing", "PermanentStorage"]

MIN_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10

# Sent as an HTTP header value, so printable ASCII only.
CONTINUATION_TOKEN_PATTERN = r"^[\x20-\x7E]*$"


class _ToolSchemaGenerator(GenerateJsonSchema):
    """Render ``X | None`` as plain ``X``; absence already means "not given"."""

    def nullable_schema(self, schema: core_schema.NullableSchema) -> JsonSchemaValue:
        return self.generate_inner(schema["schema"])


def _simplify(node: Any, defs: dict[str, Any]) -> Any:
    """Inline ``$ref``s and drop titles and null defaults."""
    if isinstance(node, list):
        return [_simplify(item, defs) for item in node]
    if not isinstance(node, dict):
        return node
    if "$ref" in node:
        target = defs[node["$ref"].rsplit("/", 1)[-1]]
        extra = {k: v for k, v in node.items() if k != "$ref"}
        return _simplify({**target, **extra}, defs)
    out: dict[str, Any] = {}
    for key, value in node.items():
        if key in ("$defs", "title"):
            continue
        if key == "default" and value is None:
            continue
        if key == "properties":
            out[key] = {name: _simplify(prop, defs) for name, prop in value.items()}
        else:
            out[key] = _simplify(value, defs)
    return out


class ToolArguments(BaseModel):
    """Base class for tool argument models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def input_schema(cls) -> dict[str, Any]:
        """Return a self-contained JSON schema for the tool's arguments."""
        raw = cls.model_json_schema(by_alias=True, schema_generator=_ToolSchemaGenerator)
        schema: dict[str, Any] = _simplify(raw, raw.get("$defs", {}))
        schema.setdefault("properties", {})
        return schema

    @classmethod
    def required_fields(cls) -> list[str]:
        """Aliases of the fields a caller must supply."""
        return [
            field.alias or name
            for name, field in cls.model_fields.items()
            if field.is_required()
        ]


# ---------------------------------------------------------------------------
# Shared parts
# ---------------------------------------------------------------------------


class DateRange(ToolArguments):
    """Date range filter (at most 3 months)."""

    date_type: DateType = Field(description="Which invoice date the range applies to")
    from_: StrictStr = Field(alias="from", description="Start date (ISO 8601)")
    to: StrictStr | None = Field(default=None, description="End date (ISO 8601)")


class Encryption(ToolArguments):
    """Symmetric key material encrypted with the Ministry of Finance public key."""

    encrypted_symmetric_key: StrictStr = Field(
        description="Base64-encoded encrypted symmetric key"
    )
    initialization_vector: StrictStr = Field(description="Base64-encoded initialization vector")


class FormCode(ToolArguments):
    """Invoice schema used within a session."""

    system_code: StrictStr = Field(description="System code, e.g. 'FA (3)'")
    schema_version: StrictStr = Field(description="Schema version, e.g. '1-0E'")
    value: StrictStr = Field(description="Form value, e.g. 'FA'")


class ExportFilters(ToolArguments):
    subject_type: SubjectType = Field(description="Subject type of the exported invoices")
    date_range: DateRange


# ---------------------------------------------------------------------------
# Per-tool arguments
# ---------------------------------------------------------------------------


# No docstrings below: a model docstring would leak into the advertised schema.


class NoArguments(ToolArguments):
    pass


class ActiveSessionsArgs(ToolArguments):
    page_size: StrictInt = Field(
        default=DEFAULT_PAGE_SIZE,
        ge=MIN_PAGE_SIZE,
        le=MAX_PAGE_SIZE,
        description=f"Number of results per page ({MIN_PAGE_SIZE}-{MAX_PAGE_SIZE})",
    )
    continuation_token: StrictStr | None = Field(
        default=None,
        pattern=CONTINUATION_TOKEN_PATTERN,
        description="Token for getting the next page of results",
    )


class TerminateSessionArgs(ToolArguments):
    reference_number: StrictStr = Field(
        min_length=1, description="Reference number of the session to terminate"
    )


class InvoiceArgs(ToolArguments):
    ksef_number: StrictStr = Field(min_length=1, description="KSeF invoice number")


class InvoiceMetadataArgs(ToolArguments):
    subject_type: SubjectType = Field(
        description="Subject1 (seller), Subject2 (buyer), Subject3, SubjectAuthorized"
    )
    date_range: DateRange
    ksef_number: StrictStr | None = Field(default=None, description="KSeF number (exact match)")
    invoice_number: StrictStr | None = Field(
        default=None, description="Invoice number from the issuer (exact match)"
    )
    seller_nip: StrictStr | None = Field(default=None, description="Seller NIP (exact match)")
    page_size: StrictInt = Field(
        default=DEFAULT_PAGE_SIZE,
        ge=MIN_PAGE_SIZE,
        le=MAX_PAGE_SIZE,
        description=f"Number of results per page ({MIN_PAGE_SIZE}-{MAX_PAGE_SIZE})",
    )
    page_offset: StrictInt = Field(default=0, ge=0, description="Zero-based page index")

    def filters(self) -> dict[str, Any]:
        """The request body: every filter the caller supplied, paging excluded."""
        return self.model_dump(
            by_alias=True, exclude_none=True, exclude={"page_size", "page_offset"}
        )


class InvoiceExportArgs(ToolArguments):
    encryption: Encryption
    filters: ExportFilters

    def body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ExportStatusArgs(ToolArguments):
    reference_number: StrictStr = Field(
        min_length=1, description="Reference number of the export"
    )


class OnlineSessionArgs(ToolArguments):
    form_code: FormCode | None = None
    encryption: Encryption | None = None

    def body(self) -> dict[str, Any] | None:
        data = self.model_dump(by_alias=True, exclude_none=True)
        return data or None


class CloseOnlineSessionArgs(ToolArguments):
    reference_number: StrictStr = Field(
        min_length=1, description="Reference number of the session to close"
    )


class SubmitInvoiceArgs(ToolArguments):
    session_reference_number: StrictStr = Field(
        min_length=1, description="Reference number of the online session"
    )
    invoice: StrictStr = Field(min_length=1, description="Invoice XML document")
