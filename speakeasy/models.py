"""
Speakeasy Data Model
====================
Assignments, submissions and the normalized per-category feedback
structures reconciled from the analysis service's callbacks.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Category(str, Enum):
    """Feedback dimensions reported by the analysis service."""

    WORD_CHOICE = "wordChoice"
    BODY_LANGUAGE = "bodyLanguage"
    FILLER_WORDS = "fillerWords"


# =============================================================================
# NORMALIZED FEEDBACK
# =============================================================================

@dataclass
class WordChoiceFeedback:
    score: Optional[float] = None
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {"score": self.score, "description": self.description}


@dataclass
class BodyLanguageFeedback:
    score: Optional[float] = None
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {"score": self.score, "description": self.description}


@dataclass
class FillerWordFeedback:
    count: int = 0
    score: Optional[float] = None
    list: List[str] = field(default_factory=list)
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "score": self.score,
            "list": list(self.list),
            "description": self.description,
        }


FEEDBACK_TYPES = {
    Category.WORD_CHOICE: WordChoiceFeedback,
    Category.BODY_LANGUAGE: BodyLanguageFeedback,
    Category.FILLER_WORDS: FillerWordFeedback,
}


# =============================================================================
# ASSIGNMENTS & SUBMISSIONS
# =============================================================================

@dataclass
class Assignment:
    id: str
    title: str = ""
    description: str = ""
    due_date: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "dueDate": self.due_date,
        }


@dataclass
class Submission:
    """One student's response to one assignment.

    ``media_url`` is absent until the backup copy of the recording is
    attached. ``category_feedback`` only holds the categories the analysis
    service has reported so far.
    """

    id: str
    assignment_id: str
    student_id: str
    submitted_at: datetime
    media_url: Optional[str] = None
    score: Optional[float] = None
    category_feedback: Dict[Category, Any] = field(default_factory=dict)
    raw_feedback: Any = None
    assignment: Optional[Assignment] = None
    student_name: Optional[str] = None

    def feedback_for(self, category: Category):
        return self.category_feedback.get(category)

    def to_dict(self) -> dict:
        feedback = {}
        for category in Category:
            value = self.category_feedback.get(category)
            feedback[category.value] = value.to_dict() if value is not None else None

        data = {
            "id": self.id,
            "assignmentId": self.assignment_id,
            "studentId": self.student_id,
            "mediaUrl": self.media_url,
            "submittedAt": self.submitted_at.isoformat() if self.submitted_at else None,
            "score": self.score,
            "categoryFeedback": feedback,
            "rawFeedback": self.raw_feedback,
        }
        if self.assignment is not None:
            data["assignment"] = self.assignment.to_dict()
        if self.student_name is not None:
            data["studentName"] = self.student_name
        return data
