"""Tests for the operation-specific Rich renderers."""

from __future__ import annotations

from tripcheck.output.console import create_console, get_output
from tripcheck.output.renderers import findings_table, render_quiet, render_result
from tripcheck.services.result import ServiceError, ServiceResult


def _failed_validation() -> ServiceResult:
    return ServiceResult(
        ok=False,
        op="on_select",
        error=ServiceError(
            code="NON_CONFORMANT",
            message="2 finding(s) in /on_select",
            detail={
                "errors": {
                    "fulfillments[0].id": ["fulfillment f2 not declared"],
                    "quote": ["price mismatch", "breakup empty"],
                }
            },
        ),
        meta={"telemetry": {"name": "OnSelectService.validate", "duration_ms": 4.2}},
    )


class TestRenderValidation:
    def test_passing(self) -> None:
        result = ServiceResult(
            ok=True,
            op="on_select",
            data={
                "transaction_id": "t-1",
                "step": "on_select",
                "version": "2.0.1",
                "fulfillment_ids": ["f1"],
            },
        )
        output = render_result(result)
        assert output.startswith("OK")
        assert "on_select" in output.splitlines()[0]
        assert "t-1" in output
        assert "2.0.1" in output
        assert '["f1"]' in output

    def test_version_omitted_when_none(self) -> None:
        result = ServiceResult(
            ok=True, op="on_select", data={"transaction_id": "t-1", "version": None}
        )
        assert "version" not in render_result(result)

    def test_failure_lists_findings(self) -> None:
        output = render_result(_failed_validation())
        first = output.splitlines()[0]
        assert first.startswith("ERROR")
        assert "2 finding(s) in /on_select" in first
        assert "fulfillments[0].id" in output
        assert "fulfillment f2 not declared" in output
        assert "breakup empty" in output

    def test_verbose_failure_shows_telemetry(self) -> None:
        output = render_result(_failed_validation(), verbose=True)
        assert "meta:" in output
        assert "OnSelectService.validate" in output
        assert "4.20ms" in output

    def test_error_without_findings_shows_detail_when_verbose(self) -> None:
        result = ServiceResult(
            ok=False,
            op="record",
            error=ServiceError(
                code="UNSUPPORTED_STEP", message="nope", detail={"step": "confirm"}
            ),
        )
        assert "step: confirm" in render_result(result, verbose=True)
        assert "step: confirm" not in render_result(result)


class TestRenderState:
    def test_state_list(self) -> None:
        result = ServiceResult(
            ok=True, op="state_list", data={"transactions": ["t-1", "t-2"], "count": 2}
        )
        output = render_result(result)
        assert "t-1" in output
        assert "t-2" in output

    def test_state_list_empty(self) -> None:
        result = ServiceResult(ok=True, op="state_list", data={"transactions": [], "count": 0})
        assert "No transactions recorded." in render_result(result)

    def test_state_show_table(self) -> None:
        result = ServiceResult(
            ok=True,
            op="state_show",
            data={
                "transaction_id": "t-1",
                "steps": {"on_search": {"fulfillment_ids": ["f1", "f3"]}},
            },
        )
        output = render_result(result)
        assert "on_search" in output
        assert "fulfillment_ids" in output
        assert '["f1","f3"]' in output

    def test_state_show_truncates_long_values(self) -> None:
        ids = [f"item-{n:03d}" for n in range(40)]
        result = ServiceResult(
            ok=True,
            op="state_show",
            data={"transaction_id": "t-1", "steps": {"on_search": {"item_ids": ids}}},
        )
        assert "..." in render_result(result)
        assert "..." not in render_result(result, verbose=True)


class TestRenderGeneric:
    def test_unknown_op(self) -> None:
        result = ServiceResult(ok=True, op="state_clear", data={"removed": 3})
        output = render_result(result)
        assert output.startswith("OK")
        assert "state_clear" in output
        assert "removed" in output


class TestRenderQuiet:
    def test_failure_counts_paths(self) -> None:
        assert render_quiet(_failed_validation()) == "FAIL: on_select (NON_CONFORMANT, 2 path(s))"

    def test_ok(self) -> None:
        assert render_quiet(ServiceResult(ok=True, op="state_clear")) == "OK: state_clear"


class TestFindingsTable:
    def test_one_row_per_message(self) -> None:
        table = findings_table({"quote": ["a", "b"], "items[0].id": ["c"]})
        assert table.row_count == 3

    def test_renders_headers(self) -> None:
        console = create_console()
        console.print(findings_table({"quote": ["price mismatch"]}))
        output = get_output(console)
        assert "Path" in output
        assert "Message" in output
        assert "price mismatch" in output
