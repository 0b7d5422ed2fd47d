# pr_buddy/models/review.py

"""Review Result Models

Pydantic models for per-file AI reviews and the aggregated PR-level summary.
"""

from typing import Optional, List, Any
from enum import Enum
from pydantic import BaseModel, Field, field_validator


class Severity(str, Enum):
    """Issue severity levels"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AssessmentTier(str, Enum):
    """Overall assessment derived from the PR rating"""
    GREAT = "great"
    GOOD = "good"
    NEEDS_WORK = "needs_work"


class ReviewSource(str, Enum):
    """What was sent to the AI for a file"""
    CONTENT = "content"
    PATCH = "patch"


class ProcessingStatus(str, Enum):
    """Terminal state of one PR processing run"""
    SKIPPED = "skipped"
    NO_FILES = "no_files"
    REVIEWED = "reviewed"
    FAILED = "failed"


DEFAULT_RATING = 3


class Issue(BaseModel):
    """A single problem reported by the AI reviewer"""
    type: str = "general"
    description: str
    severity: Severity = Severity.MEDIUM

    @field_validator("type", mode="before")
    @classmethod
    def _default_type(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return "general"
        return str(value)

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, value: Any) -> str:
        if isinstance(value, Severity):
            return value.value
        # Models answer "High", "critical", "minor" and so on
        normalized = str(value or "").strip().lower()
        if normalized in ("critical", "high", "major", "error"):
            return Severity.HIGH.value
        if normalized in ("low", "minor", "info", "trivial"):
            return Severity.LOW.value
        return Severity.MEDIUM.value


class AIReviewResult(BaseModel):
    """Structured review of one file"""
    rating: int = DEFAULT_RATING
    issues: List[Issue] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    summary: str = ""

    @field_validator("rating", mode="before")
    @classmethod
    def _clamp_rating(cls, value: Any) -> int:
        if value is None:
            return DEFAULT_RATING
        try:
            rating = int(round(float(value)))
        except (TypeError, ValueError):
            return DEFAULT_RATING
        return max(1, min(5, rating))

    @field_validator("issues", "suggestions", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("suggestions", mode="after")
    @classmethod
    def _drop_blank_suggestions(cls, value: List[str]) -> List[str]:
        return [s for s in value if s and s.strip()]

    @field_validator("summary", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    def issues_by_severity(self, severity: Severity) -> List[Issue]:
        return [issue for issue in self.issues if issue.severity == severity]


class FileReview(BaseModel):
    """Outcome of reviewing one file; exactly one of result/error is set"""
    filename: str
    status: str
    additions: int = 0
    deletions: int = 0
    source: Optional[ReviewSource] = None
    result: Optional[AIReviewResult] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None


class ReviewSummary(BaseModel):
    """PR-level aggregation of all file reviews, in listing order"""
    overall_rating: int = DEFAULT_RATING
    tier: AssessmentTier = AssessmentTier.GOOD
    total_issues: int = 0
    high_severity_issues: int = 0
    total_changes: int = 0
    files_reviewed: int = 0
    files_failed: int = 0
    file_reviews: List[FileReview] = Field(default_factory=list)


class ProcessingResult(BaseModel):
    """What happened to one PR; observed through logs and side effects only"""
    status: ProcessingStatus
    pull_number: int
    repository: str
    review_id: Optional[int] = None
    comment_id: Optional[int] = None
    overall_rating: Optional[int] = None
    files_reviewed: int = 0
    error: Optional[str] = None
