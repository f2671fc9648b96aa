import pytest

from incident_desk.core.results import ResultFormatError, decode_procedure_result, preview


def test_decode_rows_and_affected_count():
    raw = [[{"id_incidencia": 3, "message": "Estado actualizado"}], {"affectedRows": 1, "insertId": 0}]
    result = decode_procedure_result(raw)

    assert result.rows == [{"id_incidencia": 3, "message": "Estado actualizado"}]
    assert result.first_row == {"id_incidencia": 3, "message": "Estado actualizado"}
    assert result.affected == 1


def test_decode_without_status_packet():
    result = decode_procedure_result([[]])
    assert result.rows == []
    assert result.first_row is None
    assert result.affected is None


def test_decode_picks_first_numeric_affected_rows():
    raw = [[{"total": 2}], {"affectedRows": True}, {"affectedRows": 0, "insertId": 0}]
    assert decode_procedure_result(raw).affected == 0


@pytest.mark.parametrize("raw", [None, {}, "rows", [], [{"total": 1}], {"affectedRows": 1}])
def test_decode_rejects_unexpected_shapes(raw):
    with pytest.raises(ResultFormatError) as excinfo:
        decode_procedure_result(raw)
    assert excinfo.value.raw == raw


def test_preview_truncates_and_stringifies():
    from datetime import datetime

    raw = [[{"fhCreacion": datetime(2025, 9, 1), "text": "x" * 500}]]
    snippet = preview(raw)
    assert len(snippet) == 200
    assert "2025-09-01 00:00:00" in snippet
