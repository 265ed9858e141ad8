from __future__ import annotations
from datetime import time
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """snake_case внутри, camelCase на проводе (фронт шлёт dayOfWeek, periodId, ...)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def hhmm(value: Optional[time]) -> Optional[str]:
    if value is None:
        return None
    return f"{value.hour:02d}:{value.minute:02d}"


def blank_to_none(value):
    # фронт присылает "" для пустого select
    if isinstance(value, str) and not value.strip():
        return None
    return value
