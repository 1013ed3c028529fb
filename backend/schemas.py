from __future__ import annotations

import datetime as dt
from typing import Optional, List, Dict, Any, Literal

from pydantic import BaseModel, Field


class SignUpPayload(BaseModel):
    email: str
    password: str
    display_name: Optional[str] = None


class SignInPayload(BaseModel):
    email: str
    password: str


class SessionResponse(BaseModel):
    token: str
    expires_at: str
    user: Dict[str, Any]


class TaskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    priority: str = "medium"
    due_date: Optional[dt.date] = None
    assigned_to_email: Optional[str] = None
    assigned_to_name: Optional[str] = None
    sync_to_calendar: bool = False


class TaskPatch(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[dt.date] = None
    assigned_to_email: Optional[str] = None
    assigned_to_name: Optional[str] = None


class TaskResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    priority: str
    status: str
    due_date: Optional[str] = None
    google_event_id: Optional[str] = None
    assigned_to_email: Optional[str] = None
    assigned_to_name: Optional[str] = None
    created_at: str
    updated_at: str


class AssigneeSuggestion(BaseModel):
    email: str
    name: Optional[str] = None
    last_used: Optional[str] = None


class EventCreate(BaseModel):
    title: str
    description: Optional[str] = None
    date: dt.date
    start_time: str
    duration_minutes: int = Field(60, ge=1, le=24 * 60)
    location: Optional[str] = None
    event_type: str = "task"
    sync_to_calendar: bool = False


class EventResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    start_time: str
    duration_minutes: int
    location: Optional[str] = None
    event_type: str
    date: str
    google_event_id: Optional[str] = None
    status: str
    created_at: str


class FocusDurationPayload(BaseModel):
    minutes: int


class FocusTaskPayload(BaseModel):
    task_title: Optional[str] = None


class MoodCreate(BaseModel):
    mood: str
    note: Optional[str] = None
    date: Optional[dt.date] = None


class ExpenseCreate(BaseModel):
    amount: float = Field(gt=0)
    description: Optional[str] = None
    category: str = "other"
    date: Optional[dt.date] = None


class ReminderCreate(BaseModel):
    title: str
    date: dt.date
    type: str = "general"


class SweetMessageCreate(BaseModel):
    content: str
    is_ai_generated: bool = False


class MessageRequest(BaseModel):
    type: str
    context: Dict[str, Any] = Field(default_factory=dict)


class MessageResponse(BaseModel):
    message: str
    type: str


class PreferencesPatch(BaseModel):
    task_reminders_enabled: Optional[bool] = None
    reminder_days_before: Optional[int] = Field(None, ge=0, le=30)
    reminder_hours_before: Optional[int] = Field(None, ge=0, le=24 * 30)


class TaskAssignmentEmail(BaseModel):
    task_title: str
    task_description: Optional[str] = None
    assigned_to_email: str
    assigned_to_name: Optional[str] = None
    assigned_by_email: str
    due_date: Optional[str] = None
    priority: str = "medium"


class TaskReminderEmail(BaseModel):
    task_id: str
    user_id: str
    task_title: str
    due_date: str
    assigned_to_email: Optional[str] = None
    days_until_due: int


class CalendarEventCreate(BaseModel):
    summary: str
    start: str
    end: str
    time_zone: str = "UTC"
    location: Optional[str] = None
    description: Optional[str] = None


class CalendarCredentials(BaseModel):
    client_id: Optional[str] = None
    api_key: Optional[str] = None
    credentials_set: bool


class AnalyticsResponse(BaseModel):
    range: Literal["week", "month", "quarter"]
    start: str
    end: str
    focus: List[Dict[str, Any]]
    mood: List[Dict[str, Any]]
    tasks: List[Dict[str, Any]]
    expenses: List[Dict[str, Any]]
    expense_categories: List[Dict[str, Any]]
    summary: Dict[str, Any]
