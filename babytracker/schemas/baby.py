from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Baby(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    feed_warning_time: Optional[str] = Field(default="03:00", alias="feedWarningTime")
    diaper_warning_time: Optional[str] = Field(default="02:00", alias="diaperWarningTime")
    inactive: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part) or self.id
