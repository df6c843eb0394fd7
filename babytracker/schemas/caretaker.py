from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Caretaker(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    login_id: Optional[str] = Field(default=None, alias="loginId")
    name: str = ""
    type: Optional[str] = None
    inactive: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value
