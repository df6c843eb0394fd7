"""Response models for the dashboard JSON endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StatusBubbleOut(BaseModel):
    status: str
    minutes: int
    text: str
    bg_class: str
    icon: Optional[str] = None
    warning: bool = False


class ActionButtonOut(BaseModel):
    kind: str
    label: Optional[str] = None
    bubble: Optional[StatusBubbleOut] = None


class DashboardStatusOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    baby_id: str = Field(alias="babyId")
    sleeping: bool
    local_time: str = Field(alias="localTime")
    activity_count: int = Field(alias="activityCount")
    buttons: list[ActionButtonOut] = Field(default_factory=list)


class ModalRequestOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    open: bool = True
    kind: str
    baby_id: str = Field(alias="babyId")
    initial_time: str = Field(alias="initialTime")
    is_sleeping: Optional[bool] = Field(default=None, alias="isSleeping")


class UnlockTouchOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refreshed: bool
    unlock_time: Optional[str] = Field(default=None, alias="unlockTime")
