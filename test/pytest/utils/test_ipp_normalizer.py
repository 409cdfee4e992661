from datetime import date, datetime, timezone

import pytest

from print_gateway.models.printer import PrinterState
from print_gateway.models.print_job import JobStatus
from print_gateway.utils.filename_encoding import recover_filename
from print_gateway.utils.ipp_normalizer import (
    attribute_groups,
    decode_creation_time,
    flatten_attributes,
    job_bags,
    job_state,
    normalize_job,
    normalize_printer,
    printer_bags,
    printer_name_from_uri,
    printer_state,
    resolve_job_printer,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("numeric, token, expected", [
    (3, "idle", PrinterState.IDLE),
    (4, "processing", PrinterState.PROCESSING),
    (5, "stopped", PrinterState.STOPPED),
])
def test_printer_state_same_for_numeric_and_text(numeric, token, expected):
    assert printer_state(numeric) == expected
    assert printer_state(token) == expected
    assert printer_state(str(numeric)) == expected
    assert printer_state([numeric]) == expected


@pytest.mark.parametrize("value", [None, 9, "paused", True, {"x": 1}, 3.5, []])
def test_printer_state_unknown(value):
    assert printer_state(value) == PrinterState.UNKNOWN


@pytest.mark.parametrize("numeric, token, expected", [
    (3, "pending", JobStatus.PENDING),
    (4, "processing", JobStatus.PROCESSING),
    (5, "completed", JobStatus.COMPLETED),
    (6, "cancelled", JobStatus.CANCELLED),
    (7, "aborted", JobStatus.ABORTED),
])
def test_job_state_same_for_numeric_and_text(numeric, token, expected):
    assert job_state(numeric) == expected
    assert job_state(token) == expected


def test_job_state_accepts_both_cancel_spellings():
    assert job_state("canceled") == JobStatus.CANCELLED
    assert job_state("Cancelled") == JobStatus.CANCELLED
    assert job_state("stopped") == JobStatus.STOPPED


@pytest.mark.parametrize("value", [None, 9, "held", object()])
def test_job_state_defaults_to_pending(value):
    assert job_state(value) == JobStatus.PENDING


def test_flatten_inner_keys_win():
    raw = {"printer-name": "outer", "printer-location": "hall",
           "printer-attributes-tag": {"printer-name": "inner"}}
    flat = flatten_attributes(raw, "printer-attributes-tag")
    assert flat["printer-name"] == "inner"
    assert flat["printer-location"] == "hall"


def test_flatten_ignores_non_dict_input():
    assert flatten_attributes(None) == {}
    assert flatten_attributes(["a"]) == {}


def test_attribute_groups_shapes():
    assert attribute_groups({"job-attributes-tag": {"job-id": 1}}, "job-attributes-tag") == [{"job-id": 1}]
    assert attribute_groups({"job-attributes-tag": [{"job-id": 1}, "junk"]}, "job-attributes-tag") == [{"job-id": 1}]
    assert attribute_groups({}, "job-attributes-tag") == []
    assert attribute_groups(None, "job-attributes-tag") == []


def test_bags_from_flattened_response():
    assert printer_bags({"printer-name": "office1"}) == [{"printer-name": "office1"}]
    assert job_bags({"job-id": 3}) == [{"job-id": 3}]
    assert printer_bags({"operation-attributes-tag": {}}) == []


def test_normalize_printer_full():
    printer = normalize_printer({
        "printer-attributes-tag": {
            "printer-name": "office1",
            "printer-state": 5,
            "printer-is-accepting-jobs": True,
            "printer-location": "2nd floor",
            "printer-make-and-model": "Canon LBP7100C",
            "printer-info": "Color laser",
            "queued-job-count": 2,
        }
    })
    assert printer.name == "office1"
    assert printer.state == PrinterState.STOPPED
    assert printer.is_online is False
    assert printer.is_accepting_jobs is True
    assert printer.location == "2nd floor"
    assert printer.model == "Canon LBP7100C"
    assert printer.info == "Color laser"
    assert printer.queued_jobs == 2


def test_normalize_printer_defaults():
    printer = normalize_printer({}, default_name="lobby")
    assert printer.name == "lobby"
    assert printer.state == PrinterState.UNKNOWN
    assert printer.is_accepting_jobs is False
    assert printer.queued_jobs == 0
    assert normalize_printer("garbage").name == ""


def test_normalize_job_without_id_is_dropped():
    assert normalize_job({"job-name": "a.pdf"}) is None
    assert normalize_job({"job-id": None}) is None
    assert normalize_job({"job-id": "abc"}) is None
    assert normalize_job(None) is None


def test_normalize_job_full():
    job = normalize_job({
        "job-attributes-tag": {
            "job-id": 12,
            "job-name": "report.pdf",
            "job-state": "processing",
            "job-originating-user-name": "alice",
            "time-at-creation": 1714564800,
            "job-pages": 4,
            "printer-uri": "ipp://cups.local:631/printers/office1",
        }
    })
    assert job.id == 12
    assert job.printer == "office1"
    assert job.filename == "report.pdf"
    assert job.status == JobStatus.PROCESSING
    assert job.owner_user == "alice"
    assert job.pages == 4
    assert job.submitted_at == "2024-05-01T12:00:00+00:00"


def test_normalize_job_defaults():
    job = normalize_job({"job-id": "9"}, now=NOW)
    assert job.id == 9
    assert job.filename == "Untitled"
    assert job.owner_user == "Unknown User"
    assert job.printer == "Unknown Printer"
    assert job.status == JobStatus.PENDING
    assert job.submitted_at == NOW.isoformat()


def test_creation_time_prefers_epoch_field():
    data = {"time-at-creation": 0, "date-time-at-creation": "2024-05-01T12:00:00Z"}
    assert decode_creation_time(data, now=NOW) == "1970-01-01T00:00:00+00:00"


@pytest.mark.parametrize("value, expected", [
    (1714564800, "2024-05-01T12:00:00+00:00"),
    ("2024-05-01T12:00:00Z", "2024-05-01T12:00:00+00:00"),
    ("2024-05-01T14:00:00+02:00", "2024-05-01T12:00:00+00:00"),
    (datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc), "2024-05-01T12:00:00+00:00"),
    (datetime(2024, 5, 1, 12, 0), "2024-05-01T12:00:00+00:00"),
    (date(2024, 1, 1), "2024-01-01T00:00:00+00:00"),
])
def test_creation_time_second_field_variants(value, expected):
    assert decode_creation_time({"date-time-at-creation": value}, now=NOW) == expected


@pytest.mark.parametrize("data", [
    {},
    {"date-time-at-creation": "not a date"},
    {"time-at-creation": "yesterday"},
    {"time-at-creation": 10 ** 20},
])
def test_creation_time_falls_back_to_now(data):
    assert decode_creation_time(data, now=NOW) == NOW.isoformat()


def test_recover_filename_fixes_latin1_mojibake():
    mangled = "打印测试.pdf".encode("utf-8").decode("latin-1")
    assert recover_filename(mangled) == "打印测试.pdf"


@pytest.mark.parametrize("name", ["report.pdf", "relatório.pdf", "打印测试.pdf", "", None])
def test_recover_filename_is_idempotent_on_correct_names(name):
    assert recover_filename(name) == name
    assert recover_filename(recover_filename(name)) == name


def test_job_listing_applies_filename_recovery():
    mangled = "relatório.pdf".encode("utf-8").decode("latin-1")
    assert normalize_job({"job-id": 1, "job-name": mangled}).filename == "relatório.pdf"


def test_printer_name_from_uri():
    assert printer_name_from_uri("ipp://host:631/printers/office1") == "office1"
    assert printer_name_from_uri("ipp://host:631/printers/LBP%207100") == "LBP 7100"
    assert printer_name_from_uri("ipp://host:631/jobs/12") is None
    assert printer_name_from_uri(None) is None


def test_resolve_job_printer_priority():
    uri = "ipp://host/printers/office1"
    assert resolve_job_printer({"printer-uri": uri, "printer-name": "other"}) == "office1"
    assert resolve_job_printer({"job-printer-uri": uri}) == "office1"
    assert resolve_job_printer({"printer-name": "office2", "job-uri": "ipp://host/jobs/3"},
                               placeholder="7100cn") == "office2"
    assert resolve_job_printer({"job-uri": "ipp://host/jobs/3"}, placeholder="7100cn") == "7100cn"
    assert resolve_job_printer({}, default="lobby", placeholder="7100cn") == "lobby"
