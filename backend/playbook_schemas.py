# playbook_schemas.py - Request bodies for playbook mutations
#
# Every PlaybookUpdate field defaults to None. A field counts as provided
# only when the key is present and not null; an empty list is provided
# and clears the stored value.

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from field_validators import to_stored_integer
from models import MetricType


# --- Checklists ---
class UpdateChecklistItem(BaseModel):
    title: str
    description: str = ""
    state: str = ""
    state_modified: float = 0  # epoch milliseconds
    assignee_id: str = ""
    assignee_modified: float = 0
    command: str = ""
    command_last_run: float = 0
    due_date: float = 0

    def to_stored(self) -> Dict[str, Any]:
        data = self.model_dump()
        for key in ("state_modified", "assignee_modified", "command_last_run", "due_date"):
            data[key] = to_stored_integer(data[key], "checklists")
        return data


class UpdateChecklist(BaseModel):
    title: str
    items: List[UpdateChecklistItem] = Field(default_factory=list)

    def to_stored(self) -> Dict[str, Any]:
        return {"title": self.title, "items": [item.to_stored() for item in self.items]}


# --- Playbook ---
class PlaybookUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    public: Optional[bool] = None
    create_public_playbook_run: Optional[bool] = None
    reminder_message_template: Optional[str] = None
    reminder_timer_default_seconds: Optional[float] = None
    status_update_enabled: Optional[bool] = None
    invited_user_ids: Optional[List[str]] = None
    invited_group_ids: Optional[List[str]] = None
    invite_users_enabled: Optional[bool] = None
    default_owner_id: Optional[str] = None
    default_owner_enabled: Optional[bool] = None
    broadcast_channel_ids: Optional[List[str]] = None
    broadcast_enabled: Optional[bool] = None
    webhook_on_creation_urls: Optional[List[str]] = None
    webhook_on_creation_enabled: Optional[bool] = None
    message_on_join: Optional[str] = None
    message_on_join_enabled: Optional[bool] = None
    retrospective_reminder_interval_seconds: Optional[float] = None
    retrospective_template: Optional[str] = None
    retrospective_enabled: Optional[bool] = None
    webhook_on_status_update_urls: Optional[List[str]] = None
    webhook_on_status_update_enabled: Optional[bool] = None
    signal_any_keywords: Optional[List[str]] = None
    signal_any_keywords_enabled: Optional[bool] = None
    categorize_channel_enabled: Optional[bool] = None
    category_name: Optional[str] = None
    run_summary_template_enabled: Optional[bool] = None
    run_summary_template: Optional[str] = None
    channel_name_template: Optional[str] = None
    checklists: Optional[List[UpdateChecklist]] = None
    is_favorite: Optional[bool] = None

    def provided(self) -> Dict[str, Any]:
        """Fields present in the request with a non-null value."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }


# --- Members ---
class PlaybookMemberAdd(BaseModel):
    user_id: str = Field(..., min_length=1)


# --- Metrics ---
class MetricCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=512)
    description: str = ""
    type: MetricType
    target: Optional[float] = None


class MetricUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=512)
    description: Optional[str] = None
    target: Optional[float] = None

    def provided(self) -> Dict[str, Any]:
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }
