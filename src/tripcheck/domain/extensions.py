"""Version-specific attribute constraints, expressed as JSON Schema.

A constraint document is configuration, not code: each protocol version
may supply one document per step, and the whole payload is validated
against it. Documents are looked up by version through
:class:`ExtensionRegistry`; a version with no document adds no findings.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from jsonschema import Draft202012Validator

from tripcheck.domain.report import ErrorReport, format_path

ConstraintDocument = Mapping[str, Any]


def validate_payload_against_document(
    document: ConstraintDocument, payload: Any, *, prefix: str = ""
) -> ErrorReport:
    """Validate *payload* against a JSON Schema *document*.

    Findings are keyed by the JSON path of the offending instance,
    rooted at *prefix* (``payload`` when both are empty).
    """
    report = ErrorReport()
    validator = Draft202012Validator(document)
    for error in validator.iter_errors(payload):
        path = format_path(error.absolute_path)
        if prefix:
            path = f"{prefix}.{path}" if path else prefix
        report.add(path or "payload", error.message)
    return report


class ExtensionRegistry:
    """Constraint documents keyed by ``(version, step)``."""

    def __init__(
        self, documents: Mapping[str, Mapping[str, ConstraintDocument]] | None = None
    ) -> None:
        self._documents: dict[str, dict[str, ConstraintDocument]] = {}
        for version, steps in (documents or {}).items():
            for step, document in steps.items():
                self.register(version, step, document)

    def register(self, version: str, step: str, document: ConstraintDocument) -> None:
        """Add or replace the document for (*version*, *step*).

        Raises:
            jsonschema.exceptions.SchemaError: If *document* is not a valid schema.
        """
        Draft202012Validator.check_schema(document)
        self._documents.setdefault(version, {})[str(step)] = document

    def lookup(self, version: str | None, step: str) -> ConstraintDocument | None:
        if not isinstance(version, str):
            return None
        return self._documents.get(version, {}).get(str(step))

    def versions(self) -> list[str]:
        return sorted(self._documents)

    def check(self, version: str | None, step: str, payload: Any) -> ErrorReport:
        """Validate *payload* against the document for (*version*, *step*), if any."""
        document = self.lookup(version, step)
        if document is None:
            return ErrorReport()
        return validate_payload_against_document(document, payload)
