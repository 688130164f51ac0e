from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

TaskTitle = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class TaskPayload(BaseModel):
    """Base class for task request bodies (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateTaskPayload(TaskPayload):
    title: TaskTitle = Field(description="Task title; must not be blank.")
    description: str = Field(default="", description="Optional details.")
    due_date: datetime | None = Field(default=None, description="Optional due date.")


class UpdateTaskPayload(TaskPayload):
    id: int = Field(description="Must equal the id in the request path.")
    title: TaskTitle = Field(description="Task title; must not be blank.")
    description: str = Field(default="", description="Optional details.")
    is_complete: bool = Field(description="Completion flag.")
    due_date: datetime | None = Field(default=None, description="Optional due date.")
