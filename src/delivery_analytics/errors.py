"""Errors raised while turning spreadsheet grids into records."""

from __future__ import annotations

from typing import Sequence


class AnalyticsError(ValueError):
    """Base class for fatal ingestion errors surfaced to the caller."""

    code = "analytics_error"

    def to_dict(self) -> dict:
        return {"error": self.code, "message": str(self)}


class SchemaError(AnalyticsError):
    """A sheet is missing one or more mandatory headers."""

    code = "schema_error"

    def __init__(self, schema: str, missing: Sequence[str], examples: Sequence[str]) -> None:
        self.schema = schema
        self.missing = list(missing)
        self.examples = list(examples)
        example_text = "; ".join(f"'{example}'" for example in self.examples)
        super().__init__(
            f"Missing mandatory headers in the {schema} sheet: {', '.join(self.missing)}. "
            f"Expected for example: {example_text}."
        )

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload.update({"schema": self.schema, "missing": self.missing, "examples": self.examples})
        return payload


class EmptyDatasetError(AnalyticsError):
    """A sheet produced no usable rows after mandatory-field filtering."""

    code = "empty_dataset"

    _MESSAGES = {
        "tours": "No tour data could be read. Check the tours file and its headers.",
        "tasks": "No task data could be read. Check the tasks file and its headers.",
    }

    def __init__(self, schema: str) -> None:
        self.schema = schema
        super().__init__(self._MESSAGES.get(schema, f"No usable rows in the {schema} sheet."))

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["schema"] = self.schema
        return payload
