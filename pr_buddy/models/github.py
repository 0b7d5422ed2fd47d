# pr_buddy/models/github.py

"""GitHub Data Models

Pydantic models for the GitHub entities that flow through the review pipeline.
"""

from typing import Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict


class FileStatus(str, Enum):
    """Status of a file in a pull request, as reported by GitHub"""
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    RENAMED = "renamed"
    COPIED = "copied"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


class WebhookEvent(BaseModel):
    """One raw webhook delivery, as received"""
    event_type: Optional[str] = None
    delivery_id: Optional[str] = None
    signature: Optional[str] = None
    content_type: Optional[str] = None
    body: bytes = b""


class PRInfo(BaseModel):
    """Normalized pull request descriptor extracted from a webhook payload"""
    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    pull_number: int
    action: str
    title: str
    author: str
    head_sha: str
    base_sha: str
    html_url: str
    is_public: bool

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def reference(self) -> str:
        """Short PR reference used in log lines (owner/repo#123)"""
        return f"{self.owner}/{self.repo}#{self.pull_number}"


class ChangedFile(BaseModel):
    """Pull Request file change"""
    model_config = ConfigDict(frozen=True)

    filename: str
    status: FileStatus
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    patch: Optional[str] = None
    binary: Optional[bool] = None
