"""Collaborators outside the sync engine.

The host page decides which reports a viewer may open and obtains embed
tokens for them. Those services are not part of this package; only the
shapes the page passes around are defined here.
"""

from datetime import datetime
from typing import List, Protocol, Sequence

from pydantic import BaseModel, Field


class ReportAccess(BaseModel):
    """A report the viewer is permitted to open."""

    report_id: str
    workspace_id: str
    name: str
    roles: List[str] = Field(default_factory=list)


class EmbedToken(BaseModel):
    """Short-lived credentials for embedding one report."""

    embed_url: str
    access_token: str
    report_id: str
    expiration: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expiration


class ReportAccessProvider(Protocol):
    def permitted_reports(self, viewer_id: str) -> List[ReportAccess]:
        ...


class EmbedTokenProvider(Protocol):
    def embed_token(self, report_id: str, workspace_id: str, roles: Sequence[str]) -> EmbedToken:
        ...
