"""
Submission Coordinator
======================
Sequences the submission lifecycle:

    create_provisional -> MediaTransferAgent.dispatch -> attach_media

and, independently and at any time afterwards (or before the media is
attached), ingest_feedback for the analysis service's callback.

The row is created before any media moves so the analysis request can
carry the submission id. Two writers may touch the same row (attach_media
and ingest_feedback); they write disjoint fields and nothing is locked.
"""
import logging
from datetime import datetime, timezone

from speakeasy.errors import NotFoundError, ValidationError
from speakeasy.models import Submission
from speakeasy.services.feedback_normalizer import extract_top_level, normalize
from speakeasy.services.media_transfer import MediaMetadata, MediaTransferAgent
from speakeasy.services.submission_store import SubmissionStore

logger = logging.getLogger(__name__)

ROLES = ("student", "teacher")


def _check_media_url(media_url):
    if not isinstance(media_url, str) or not media_url.strip():
        raise ValidationError("Missing or invalid media URL", field="mediaUrl")


class SubmissionCoordinator:

    def __init__(self, store: SubmissionStore, transfer: MediaTransferAgent = None, clock=None):
        self.store = store
        self.transfer = transfer
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    # =========================================================================
    # RECORDING FLOW
    # =========================================================================

    def create_provisional(self, assignment_id: str, student_id: str) -> Submission:
        """Insert a submission with no media yet and return it (with its id)."""
        if not student_id:
            raise ValidationError("Missing student ID", field="studentId")
        if not assignment_id:
            raise ValidationError("Missing assignment ID", field="assignmentId")

        submission = self.store.insert(assignment_id, student_id, self.clock())
        logger.info("Created provisional submission %s (assignment=%s, student=%s)",
                    submission.id, assignment_id, student_id)
        return submission

    def attach_media(self, submission_id: str, media_url: str) -> Submission:
        _check_media_url(media_url)

        # Re-attaching the same URL rewrites the same value.
        submission = self.store.patch(submission_id, {"media_url": media_url})
        logger.info("Attached media to submission %s", submission_id)
        return submission

    def record(self, assignment_id: str, student_id: str, blob: bytes, media_format: str = "webm") -> Submission:
        """Full recording flow for one uploaded video.

        Raises UpstreamError when the analysis endpoint rejects the upload;
        the provisional row stays behind without media in that case.
        """
        if self.transfer is None:
            raise RuntimeError("No media transfer agent configured")
        if not blob:
            raise ValidationError("Missing video", field="video")
        if not student_id:
            raise ValidationError("Missing student ID", field="studentId")

        assignment = self.store.get_assignment(assignment_id)
        if assignment is None:
            raise NotFoundError("Assignment not found")

        submission = self.create_provisional(assignment_id, student_id)
        metadata = MediaMetadata(
            student_id=student_id,
            assignment_id=assignment_id,
            submission_id=submission.id,
            assignment_title=assignment.title or "Unknown Assignment",
            assignment_description=assignment.description or "",
            submitted_at=submission.submitted_at,
            media_format=media_format or "webm",
        )
        reference = self.transfer.dispatch(blob, metadata)

        if not reference.uploaded:
            logger.warning("Submission %s has no backup copy; media URL left empty", submission.id)
            return submission
        return self.attach_media(submission.id, reference.url)

    def submit_with_url(self, assignment_id: str, student_id: str, media_url: str = None) -> Submission:
        """Create a submission for media the client already uploaded."""
        if media_url is not None and not isinstance(media_url, str):
            raise ValidationError("Invalid media URL", field="videoUrl")
        submission = self.create_provisional(assignment_id, student_id)
        if media_url and media_url.strip():
            submission = self.attach_media(submission.id, media_url)
        return submission

    # =========================================================================
    # FEEDBACK CALLBACK
    # =========================================================================

    def ingest_feedback(self, submission_id: str, raw_payload: dict) -> Submission:
        """Merge a feedback callback into the stored submission.

        Only the categories present in the payload are written; the others
        keep whatever an earlier callback stored.
        """
        if not submission_id:
            raise ValidationError("Missing submission ID", field="submissionId")

        categories = normalize(raw_payload)
        top_level = extract_top_level(raw_payload)

        fields = {}
        if top_level.has_score:
            fields["score"] = top_level.score
        if top_level.has_raw:
            fields["raw_feedback"] = top_level.raw
        if categories:
            fields["category_feedback"] = categories

        logger.info("Feedback for submission %s: %s",
                    submission_id, ", ".join(c.value for c in categories) or "no categories")
        return self.store.patch(submission_id, fields)

    # =========================================================================
    # LISTING
    # =========================================================================

    def list_submissions(self, role: str, student_id: str = None, assignment_id: str = None) -> list:
        """Students see their own submissions; teachers see all of them."""
        if role not in ROLES:
            raise ValidationError("Missing or invalid role", field="role")
        if role == "student":
            if not student_id:
                raise ValidationError("Missing user ID", field="studentId")
            return self.store.query(student_id=student_id, assignment_id=assignment_id)
        return self.store.query(assignment_id=assignment_id)
