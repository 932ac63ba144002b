from newsletter.schemas.newsletter_issue import (
    NewsletterIssueCreate,
    NewsletterIssueResponse,
    NewsletterPublishResponse,
)

__all__ = [
    "NewsletterIssueCreate",
    "NewsletterIssueResponse",
    "NewsletterPublishResponse",
]
