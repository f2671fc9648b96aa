import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

PREVIEW_LENGTH = 200


class ResultFormatError(Exception):
    """The driver returned something that is not a list of result sets."""

    def __init__(self, raw: Any):
        super().__init__("Unexpected procedure result shape")
        self.raw = raw


@dataclass
class ProcedureResult:
    rows: List[Dict[str, Any]]
    affected: Optional[int] = None
    raw: Any = field(default=None, repr=False)

    @property
    def first_row(self) -> Optional[Dict[str, Any]]:
        return self.rows[0] if self.rows else None


def preview(raw: Any, length: int = PREVIEW_LENGTH) -> str:
    return json.dumps(raw, default=str, ensure_ascii=False)[:length]


def _affected_rows(raw: List[Any]) -> Optional[int]:
    for item in raw:
        if isinstance(item, dict):
            count = item.get("affectedRows")
            if isinstance(count, int) and not isinstance(count, bool):
                return count
    return None


def decode_procedure_result(raw: Any) -> ProcedureResult:
    """
    Turn the raw CALL output (result sets interleaved with status packets)
    into rows of the first result set plus the reported affected-row count.
    """
    if not isinstance(raw, list) or not raw or not isinstance(raw[0], list):
        raise ResultFormatError(raw)
    return ProcedureResult(rows=raw[0], affected=_affected_rows(raw), raw=raw)
