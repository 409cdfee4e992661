from datetime import datetime

from print_gateway.models.history import HistoryRecord, HistoryStatus, format_file_size


def test_format_file_size():
    assert format_file_size(0) == "0 Bytes"
    assert format_file_size(512) == "512 Bytes"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(2 * 1024 * 1024) == "2 MB"
    assert format_file_size(5 * 1024 ** 4) == "5120 GB"


def test_for_submission_recovers_filename():
    mangled = "relatório.pdf".encode("utf-8").decode("latin-1")
    record = HistoryRecord.for_submission(42, mangled, "office1", 2048, "alice")

    assert record.filename == "relatório.pdf"
    assert record.status == HistoryStatus.SUCCESS
    assert record.size == "2 KB"
    assert datetime.fromisoformat(record.printed_at).tzinfo is not None


def test_history_record_dict_round_trip():
    record = HistoryRecord(id=42, filename="report.pdf", printer="office1",
                           printed_at="2024-05-01T10:00:00+00:00",
                           status=HistoryStatus.FAILED, size="1 KB", user="alice")
    data = record.to_dict()
    assert data["printedAt"] == "2024-05-01T10:00:00+00:00"
    assert data["status"] == "failed"
    assert HistoryRecord.from_dict(data) == record


def test_from_dict_tolerates_missing_keys():
    record = HistoryRecord.from_dict({"id": 1, "status": "weird"})
    assert record.filename == ""
    assert record.status == HistoryStatus.SUCCESS
    assert record.size == "0 Bytes"
