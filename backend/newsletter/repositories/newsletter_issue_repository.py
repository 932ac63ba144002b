"""Repository for NewsletterIssue rows."""

from uuid import UUID

from sqlalchemy.orm import Session

from newsletter.models.newsletter_issue import NewsletterIssue
from newsletter.models.shared import generate_uuid


class NewsletterIssueRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, title: str, text_content: str, html_content: str) -> NewsletterIssue:
        """Insert an issue without committing; the publish transaction owns the commit."""
        issue = NewsletterIssue(
            id=generate_uuid(),
            title=title,
            text_content=text_content,
            html_content=html_content,
        )
        self.db.add(issue)
        self.db.flush()
        return issue

    def get_by_id(self, issue_id: UUID) -> NewsletterIssue | None:
        return self.db.query(NewsletterIssue).filter(NewsletterIssue.id == issue_id).first()
