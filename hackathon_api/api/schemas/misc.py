"""Schemas de feature flags, tareas QStash y guestbook."""
from typing import Any, ClassVar, Optional, Tuple

from pydantic import BaseModel, Field

from hackathon_api.api.schemas.base import CamelModel


class FeatureFlagUpdate(CamelModel):
    non_nullable: ClassVar[Tuple[str, ...]] = ("name", "description", "enabled", "category", "status", "admin_only")

    name: Optional[str] = None
    description: Optional[str] = None
    enabled: Optional[bool] = None
    category: Optional[str] = None
    status: Optional[str] = None
    admin_only: Optional[bool] = None


class ScheduleTaskPayload(CamelModel):
    type: Optional[str] = None
    payload: Any = None
    scheduled_for: Optional[str] = None
    delay: Optional[int] = Field(default=None, ge=0)


class WelcomeEmailPayload(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None


class GuestbookEntryIn(BaseModel):
    name: Optional[str] = None
    message: Optional[str] = None
