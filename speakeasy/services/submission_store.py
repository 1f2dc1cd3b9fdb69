"""
Submission Store
================
Persistence for submission rows. No business logic lives here: the
coordinator decides what to write, the store only writes it.

Stores:
- SupabaseSubmissionStore: the `submissions` table behind PostgREST
- InMemorySubmissionStore: dict-backed stand-in with the same semantics

Patch fields use domain names:
- media_url          -> video_url
- score              -> score
- raw_feedback       -> feedback_json
- category_feedback  -> word_choice_feedback / body_language_feedback /
                        filler_word_feedback (JSON text, merged per category)
"""
import copy
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from speakeasy.errors import NotFoundError
from speakeasy.models import Assignment, Category, Submission
from speakeasy.services.feedback_normalizer import decode_feedback, encode_feedback

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = ("media_url", "score", "raw_feedback", "category_feedback")

CATEGORY_COLUMNS = {
    Category.WORD_CHOICE: "word_choice_feedback",
    Category.BODY_LANGUAGE: "body_language_feedback",
    Category.FILLER_WORDS: "filler_word_feedback",
}

JOINED_SELECT = """
    *,
    assignments (
        title,
        description,
        due_date
    ),
    profiles (
        name
    )
"""


class SubmissionStore(ABC):
    """Row store for submissions."""

    @abstractmethod
    def insert(self, assignment_id: str, student_id: str, submitted_at: datetime) -> Submission:
        """Create a provisional row (no media, no feedback)."""

    @abstractmethod
    def patch(self, submission_id: str, fields: dict) -> Submission:
        """Update one row. Raises NotFoundError when no row matched."""

    @abstractmethod
    def get(self, submission_id: str):
        """Return the submission, or None."""

    @abstractmethod
    def get_assignment(self, assignment_id: str):
        """Return the Assignment, or None."""

    @abstractmethod
    def query(self, student_id: str = None, assignment_id: str = None) -> list:
        """Submissions with assignment/student data joined, newest first."""


def _check_fields(fields: dict):
    unknown = set(fields) - set(PATCHABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown submission fields: {', '.join(sorted(unknown))}")


def _parse_timestamp(value):
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace('Z', '+00:00'))


# =============================================================================
# SUPABASE
# =============================================================================

class SupabaseSubmissionStore(SubmissionStore):
    """Submission rows in Supabase. The client is created by the caller."""

    def __init__(self, client, table: str = "submissions", assignments_table: str = "assignments"):
        self.client = client
        self.table = table
        self.assignments_table = assignments_table

    def insert(self, assignment_id, student_id, submitted_at):
        result = self.client.table(self.table).insert({
            "assignment_id": assignment_id,
            "student_id": student_id,
            "video_url": None,
            "submitted_at": submitted_at.isoformat(),
        }).execute()

        if not result.data:
            raise RuntimeError("Insert into submissions returned no row")
        return row_to_submission(result.data[0])

    def patch(self, submission_id, fields):
        _check_fields(fields)
        update = {}
        if "media_url" in fields:
            update["video_url"] = fields["media_url"]
        if "score" in fields:
            update["score"] = fields["score"]
        if "raw_feedback" in fields:
            update["feedback_json"] = fields["raw_feedback"]
        for category, feedback in (fields.get("category_feedback") or {}).items():
            update[CATEGORY_COLUMNS[Category(category)]] = encode_feedback(feedback)

        if not update:
            existing = self.get(submission_id)
            if existing is None:
                raise NotFoundError("Submission not found")
            return existing

        logger.debug("Updating submission %s columns: %s", submission_id, ", ".join(sorted(update)))
        result = self.client.table(self.table).update(update).eq('id', submission_id).execute()
        if not result.data:
            raise NotFoundError("Submission not found")
        return row_to_submission(result.data[0])

    def get(self, submission_id):
        result = self.client.table(self.table).select('*').eq('id', submission_id).execute()
        if not result.data:
            return None
        return row_to_submission(result.data[0])

    def get_assignment(self, assignment_id):
        result = self.client.table(self.assignments_table).select('*').eq('id', assignment_id).execute()
        if not result.data:
            return None
        row = result.data[0]
        return Assignment(
            id=row.get('id'),
            title=row.get('title') or "",
            description=row.get('description') or "",
            due_date=row.get('due_date'),
        )

    def query(self, student_id=None, assignment_id=None):
        query = self.client.table(self.table).select(JOINED_SELECT)
        if student_id:
            query = query.eq('student_id', student_id)
        if assignment_id:
            query = query.eq('assignment_id', assignment_id)
        result = query.order('submitted_at', desc=True).execute()
        return [row_to_submission(row) for row in result.data or []]


def row_to_submission(row: dict) -> Submission:
    """Map a `submissions` row (optionally with joins) onto a Submission."""
    feedback = {}
    for category, column in CATEGORY_COLUMNS.items():
        value = decode_feedback(category, row.get(column))
        if value is not None:
            feedback[category] = value

    assignment = None
    joined = row.get('assignments')
    if isinstance(joined, dict):
        assignment = Assignment(
            id=row.get('assignment_id'),
            title=joined.get('title') or "",
            description=joined.get('description') or "",
            due_date=joined.get('due_date'),
        )

    profile = row.get('profiles')
    student_name = profile.get('name') if isinstance(profile, dict) else None

    return Submission(
        id=str(row.get('id')),
        assignment_id=row.get('assignment_id'),
        student_id=row.get('student_id'),
        submitted_at=_parse_timestamp(row.get('submitted_at')),
        media_url=row.get('video_url'),
        score=row.get('score'),
        category_feedback=feedback,
        raw_feedback=row.get('feedback_json'),
        assignment=assignment,
        student_name=student_name,
    )


# =============================================================================
# IN MEMORY
# =============================================================================

class InMemorySubmissionStore(SubmissionStore):
    """Dict-backed store. Returned submissions are copies."""

    def __init__(self):
        self._rows = {}
        self._assignments = {}
        self._students = {}

    def add_assignment(self, assignment: Assignment):
        self._assignments[assignment.id] = assignment
        return assignment

    def add_student(self, student_id: str, name: str):
        self._students[student_id] = name

    def delete(self, submission_id: str):
        self._rows.pop(submission_id, None)

    def insert(self, assignment_id, student_id, submitted_at=None):
        submission = Submission(
            id=str(uuid.uuid4()),
            assignment_id=assignment_id,
            student_id=student_id,
            submitted_at=submitted_at or datetime.now(timezone.utc),
        )
        self._rows[submission.id] = submission
        return copy.deepcopy(submission)

    def patch(self, submission_id, fields):
        _check_fields(fields)
        submission = self._rows.get(submission_id)
        if submission is None:
            raise NotFoundError("Submission not found")

        if "media_url" in fields:
            submission.media_url = fields["media_url"]
        if "score" in fields:
            submission.score = fields["score"]
        if "raw_feedback" in fields:
            submission.raw_feedback = copy.deepcopy(fields["raw_feedback"])
        for category, feedback in (fields.get("category_feedback") or {}).items():
            submission.category_feedback[Category(category)] = copy.deepcopy(feedback)
        return copy.deepcopy(submission)

    def get(self, submission_id):
        submission = self._rows.get(submission_id)
        return copy.deepcopy(submission) if submission else None

    def get_assignment(self, assignment_id):
        return self._assignments.get(assignment_id)

    def query(self, student_id=None, assignment_id=None):
        rows = []
        for submission in self._rows.values():
            if student_id and submission.student_id != student_id:
                continue
            if assignment_id and submission.assignment_id != assignment_id:
                continue
            row = copy.deepcopy(submission)
            row.assignment = self._assignments.get(row.assignment_id)
            row.student_name = self._students.get(row.student_id)
            rows.append(row)
        rows.sort(key=lambda s: s.submitted_at, reverse=True)
        return rows
