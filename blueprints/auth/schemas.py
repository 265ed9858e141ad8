from __future__ import annotations

from pydantic import Field

from blueprints.core.schemas import WireModel


class LoginIn(WireModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1)


class ValidateIn(WireModel):
    token: str = Field(min_length=1)
    username: str = Field(min_length=1)


class TeacherLinkIn(WireModel):
    teacher_id: str = Field(min_length=1)
