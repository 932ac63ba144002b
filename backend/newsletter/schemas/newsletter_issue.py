"""Newsletter issue schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NewsletterIssueCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    html_content: str = Field(min_length=1)
    text_content: str = Field(min_length=1)


class NewsletterPublishResponse(BaseModel):
    newsletter_issue_id: UUID
    title: str
    recipients_enqueued: int


class NewsletterIssueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    published_at: datetime | None = None
    pending_deliveries: int = 0
