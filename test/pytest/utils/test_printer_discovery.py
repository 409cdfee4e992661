import asyncio

from conftest import CUPS_URL, FakeTransport, ok
from print_gateway.models.printer import PrinterState
from print_gateway.utils.ipp_client import IppResponse, TransportError
from print_gateway.utils.printer_discovery import (
    DiscoveryStage,
    PrinterDiscovery,
    StageOutcome,
    advance,
)

OFFICE1 = f"{CUPS_URL}/printers/office1"
OFFICE2 = f"{CUPS_URL}/printers/office2"
LOBBY = f"{CUPS_URL}/printers/lobby"


def _discover(app_config, routes):
    transport = FakeTransport(routes)
    result = asyncio.run(PrinterDiscovery(app_config, transport).discover_printers())
    return result, transport


def test_advance_stops_on_first_printers():
    result = advance(DiscoveryStage.DIRECT_QUERY, StageOutcome(printers=["p"]))
    assert result == {"success": True, "printers": ["p"], "source": "get-printer-attributes"}


def test_advance_moves_to_next_stage():
    assert advance(DiscoveryStage.BULK_QUERY, StageOutcome(error="x")) == DiscoveryStage.DIRECT_QUERY
    assert advance(DiscoveryStage.DIRECT_QUERY, StageOutcome()) == DiscoveryStage.NAME_PROBE


def test_advance_fails_after_last_stage():
    result = advance(DiscoveryStage.NAME_PROBE, StageOutcome(error="timeout"))
    assert result["success"] is False
    assert result["error"] == "timeout"
    assert result["message"]


def test_bulk_query_success(app_config):
    result, transport = _discover(app_config, {
        (CUPS_URL, "CUPS-Get-Printers"): ok(printer_attributes_tag=[
            {"printer-name": "office1", "printer-state": 3, "printer-is-accepting-jobs": True},
            {"printer-name": "office2", "printer-state": "stopped"},
        ]),
    })
    assert result["success"] is True
    assert result["source"] == "cups-get-printers"
    assert [p.name for p in result["printers"]] == ["office1", "office2"]
    assert result["printers"][0].state == PrinterState.IDLE
    assert result["printers"][1].is_online is False
    assert transport.operations() == [(CUPS_URL, "CUPS-Get-Printers")]


def test_bulk_failure_then_direct_query_short_circuits(app_config):
    result, transport = _discover(app_config, {
        (CUPS_URL, "CUPS-Get-Printers"): TransportError("connection reset"),
        (CUPS_URL, "Get-Printer-Attributes"): ok(printer_attributes_tag={"printer-name": "office1"}),
    })
    assert result["success"] is True
    assert [p.name for p in result["printers"]] == ["office1"]
    assert transport.operations() == [
        (CUPS_URL, "CUPS-Get-Printers"),
        (CUPS_URL, "Get-Printer-Attributes"),
    ]


def test_bulk_server_error_falls_over(app_config):
    result, transport = _discover(app_config, {
        (CUPS_URL, "CUPS-Get-Printers"): IppResponse("server-error-operation-not-supported"),
        (CUPS_URL, "Get-Printer-Attributes"): ok(printer_attributes_tag={"printer-name": "office1"}),
    })
    assert result["source"] == "get-printer-attributes"
    assert len(transport.calls) == 2


def test_bulk_empty_list_falls_over(app_config):
    result, _ = _discover(app_config, {
        (CUPS_URL, "CUPS-Get-Printers"): ok(),
        (CUPS_URL, "Get-Printer-Attributes"): ok(printer_attributes_tag={"printer-name": "office1"}),
    })
    assert result["source"] == "get-printer-attributes"


def test_name_probe_keeps_responding_candidates(app_config):
    result, transport = _discover(app_config, {
        (CUPS_URL, "CUPS-Get-Printers"): TransportError("refused"),
        (CUPS_URL, "Get-Printer-Attributes"): IppResponse("client-error-not-found"),
        (OFFICE1, "Get-Printer-Attributes"): ok(printer_attributes_tag={"printer-state": 4}),
        (OFFICE2, "Get-Printer-Attributes"): IppResponse("client-error-not-found"),
        (LOBBY, "Get-Printer-Attributes"): ok(),
    })
    assert result["success"] is True
    assert result["source"] == "name-probe"
    assert [p.name for p in result["printers"]] == ["office1", "lobby"]
    assert result["printers"][0].state == PrinterState.PROCESSING
    assert result["printers"][1].state == PrinterState.UNKNOWN
    assert len(transport.calls) == 5


def test_all_stages_fail(app_config):
    result, transport = _discover(app_config, {})
    assert result["success"] is False
    assert "connection refused" in result["error"]
    # bulk, direct and one probe per candidate
    assert len(transport.calls) == 5


def test_unexpected_stage_error_does_not_break_chain(app_config):
    def explode(message):
        raise KeyError("boom")

    result, _ = _discover(app_config, {
        (CUPS_URL, "CUPS-Get-Printers"): explode,
        (CUPS_URL, "Get-Printer-Attributes"): ok(printer_attributes_tag={"printer-name": "office1"}),
    })
    assert result["success"] is True
    assert result["source"] == "get-printer-attributes"


def test_discovery_requests_printer_attributes(app_config):
    _, transport = _discover(app_config, {
        (CUPS_URL, "CUPS-Get-Printers"): ok(printer_attributes_tag={"printer-name": "office1"}),
    })
    message = transport.calls[0][2]
    requested = message["operation-attributes-tag"]["requested-attributes"]
    assert "printer-state" in requested
    assert "queued-job-count" in requested
