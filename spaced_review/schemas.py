from enum import Enum
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from typing import List, Optional
from datetime import datetime
from spaced_review.errors import ValidationError


class ReviewResult(str, Enum):
    """Outcome of a single review"""
    CORRECT = "correct"
    PARTIAL = "partial"
    INCORRECT = "incorrect"


class ItemStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"


class Severity(str, Enum):
    """Reminder severity, declared most severe first"""
    OVERDUE = "overdue"
    DUE_TODAY = "due-today"
    DUE_SOON = "due-soon"
    AT_RISK = "at-risk"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)


class ItemCreate(BaseModel):
    """Schema for flagging a topic for tracking"""
    user_id: str = Field(min_length=1)
    subject_id: str = Field(min_length=1)
    topic_name: str = Field(min_length=1)
    confidence: int = Field(ge=1, le=5)
    difficulty_level: int = Field(default=3, ge=1, le=5)
    chapter_reference: Optional[str] = None

    @field_validator("user_id", "subject_id", "topic_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class ReviewCreate(BaseModel):
    """Schema for reporting a review outcome"""
    item_id: int
    confidence: int = Field(ge=1, le=5)
    time_spent_seconds: int = Field(gt=0)
    result: ReviewResult


class ReviewItemSchema(BaseModel):
    """Schema for a tracked item as returned to collaborators"""
    id: int
    user_id: str
    subject_id: str
    topic_name: str
    chapter_reference: Optional[str] = None
    difficulty_level: int
    initial_confidence: int
    ease_factor: float
    interval_days: int
    repetition_count: int
    review_count: int
    last_review_confidence: Optional[int] = None
    status: ItemStatus
    created_at: datetime
    last_reviewed_at: Optional[datetime] = None
    next_review_at: datetime
    version: int

    # Filled in by read-side queries, never stored
    retention_estimate: Optional[float] = None

    class Config:
        from_attributes = True


class ReviewRecordSchema(BaseModel):
    """Schema for one immutable review record"""
    id: int
    item_id: int
    confidence: int
    time_spent_seconds: int
    result: ReviewResult
    reviewed_at: datetime
    interval_before: int
    interval_after: int
    ease_before: float
    ease_after: float

    class Config:
        from_attributes = True


class ReviewOutcome(BaseModel):
    """Updated item plus the record that produced it"""
    item: ReviewItemSchema
    record: ReviewRecordSchema


class Reminder(BaseModel):
    """Single entry of the review reminder feed"""
    item: ReviewItemSchema
    severity: Severity
    retention_estimate: float
    message: str


class ReviewHistory(BaseModel):
    item: ReviewItemSchema
    records: List[ReviewRecordSchema]
    mastered: bool


def parse(schema, **data):
    """Build a validated record, raising the engine's ValidationError on bad input"""
    try:
        return schema(**data)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or None
        raise ValidationError(f"{field}: {error['msg']}" if field else error["msg"], field=field) from e
