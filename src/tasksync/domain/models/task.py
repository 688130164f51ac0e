from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Task(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int = Field(description="Unique task identifier, assigned by the store.")
    title: str = Field(min_length=1, description="Short task title.")
    description: str = Field(default="", description="Free-form details.")
    is_complete: bool = Field(default=False, description="Completion flag.")
    created_at: datetime = Field(description="Creation instant, set once by the server.")
    due_date: datetime | None = Field(default=None, description="Optional due date.")
