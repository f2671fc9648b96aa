from typing import Any

from pydantic import BaseModel

# Fields stay untyped: handlers coerce them so a 400 can echo what was sent.


class IncidentStateIn(BaseModel):
    newStateId: Any = None


class IncidentContentIn(BaseModel):
    description: Any = None


class MarkOldIn(BaseModel):
    daysOld: Any = None
    inactiveStateId: Any = None
