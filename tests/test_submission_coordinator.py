"""
Test: Submission coordinator: lifecycle, feedback merge, recording flow.
"""
import pytest

from speakeasy.errors import NotFoundError, UpstreamError, ValidationError
from speakeasy.models import BodyLanguageFeedback, Category, WordChoiceFeedback
from speakeasy.services.media_transfer import MediaTransferAgent
from speakeasy.services.submission_coordinator import SubmissionCoordinator

from conftest import ANALYSIS_URL, FakeBackupStorage, FakeSession

MEDIA_URL = "https://backup/x.webm"


class TestCreateProvisional:
    def test_row_without_media(self, coordinator, store, clock):
        submission = coordinator.create_provisional("A1", "S1")
        rows = store.query(student_id="S1")
        assert [r.id for r in rows] == [submission.id]
        assert rows[0].media_url is None
        assert rows[0].submitted_at == clock.now

    def test_missing_student(self, coordinator):
        with pytest.raises(ValidationError) as exc:
            coordinator.create_provisional("A1", None)
        assert exc.value.field == "studentId"

    def test_no_uniqueness(self, coordinator, store):
        coordinator.create_provisional("A1", "S1")
        coordinator.create_provisional("A1", "S1")
        assert len(store.query(student_id="S1", assignment_id="A1")) == 2


class TestAttachMedia:
    def test_unknown_submission(self, coordinator):
        with pytest.raises(NotFoundError):
            coordinator.attach_media("missing", MEDIA_URL)

    def test_missing_url(self, coordinator):
        submission = coordinator.create_provisional("A1", "S1")
        with pytest.raises(ValidationError):
            coordinator.attach_media(submission.id, "  ")

    def test_non_string_url_rejected(self, coordinator, store):
        submission = coordinator.create_provisional("A1", "S1")
        with pytest.raises(ValidationError):
            coordinator.attach_media(submission.id, {"href": MEDIA_URL})
        assert store.get(submission.id).media_url is None

    def test_submit_with_non_string_url_creates_nothing(self, coordinator, store):
        with pytest.raises(ValidationError):
            coordinator.submit_with_url("A1", "S1", ["https://backup/x.webm"])
        assert store.query(student_id="S1") == []

    def test_sets_url_only(self, coordinator, store, clock):
        submission = coordinator.create_provisional("A1", "S1")
        coordinator.ingest_feedback(submission.id, {"score": 70})
        updated = coordinator.attach_media(submission.id, MEDIA_URL)
        assert updated.media_url == MEDIA_URL
        assert updated.submitted_at == clock.now
        assert updated.score == 70

    def test_idempotent(self, coordinator, store):
        submission = coordinator.create_provisional("A1", "S1")
        first = coordinator.attach_media(submission.id, MEDIA_URL)
        second = coordinator.attach_media(submission.id, MEDIA_URL)
        assert first == second
        assert store.get(submission.id) == first


class TestIngestFeedback:
    def test_unknown_submission(self, coordinator):
        with pytest.raises(NotFoundError):
            coordinator.ingest_feedback("missing", {"wordChoiceScore": 3})

    def test_deleted_submission(self, coordinator, store):
        submission = coordinator.create_provisional("A1", "S1")
        store.delete(submission.id)
        with pytest.raises(NotFoundError):
            coordinator.ingest_feedback(submission.id, {"score": 1})

    def test_before_media_attached(self, coordinator):
        submission = coordinator.create_provisional("A1", "S1")
        updated = coordinator.ingest_feedback(submission.id, {"bodyLanguageFeedback": "Relaxed"})
        assert updated.media_url is None
        assert updated.feedback_for(Category.BODY_LANGUAGE) == BodyLanguageFeedback(None, "Relaxed")

    def test_absent_categories_untouched(self, coordinator):
        submission = coordinator.create_provisional("A1", "S1")
        coordinator.ingest_feedback(submission.id, {"wordChoiceScore": 5, "wordChoiceDescription": "ok"})
        updated = coordinator.ingest_feedback(submission.id, {"bodyLanguageScore": 6})
        assert updated.feedback_for(Category.WORD_CHOICE) == WordChoiceFeedback(5, "ok")
        assert updated.feedback_for(Category.BODY_LANGUAGE) == BodyLanguageFeedback(6, None)

    def test_score_and_raw_feedback(self, coordinator):
        submission = coordinator.create_provisional("A1", "S1")
        updated = coordinator.ingest_feedback(submission.id, {"score": 91, "feedback": {"summary": "Great"}})
        assert updated.score == 91
        assert updated.raw_feedback == {"summary": "Great"}

    def test_non_numeric_score_keeps_stored_score(self, coordinator):
        submission = coordinator.create_provisional("A1", "S1")
        coordinator.ingest_feedback(submission.id, {"score": 70})
        updated = coordinator.ingest_feedback(submission.id, {"score": "N/A"})
        assert updated.score == 70

    def test_null_score_clears(self, coordinator):
        submission = coordinator.create_provisional("A1", "S1")
        coordinator.ingest_feedback(submission.id, {"score": 70})
        assert coordinator.ingest_feedback(submission.id, {"score": None}).score is None

    def test_empty_payload_leaves_row(self, coordinator, store):
        submission = coordinator.create_provisional("A1", "S1")
        assert coordinator.ingest_feedback(submission.id, {"submissionId": submission.id}) == store.get(submission.id)


class TestRecord:
    def test_full_flow(self, coordinator, session, backup):
        submission = coordinator.record("A1", "S1", b"video-bytes", "webm")
        assert session.calls[0]["data"]["submissionId"] == submission.id
        assert session.calls[0]["data"]["assignmentTitle"] == "Persuasive Speech"
        assert submission.media_url.startswith("https://backup.test/videos/S1/A1/")
        assert len(backup.objects) == 1

    def test_analysis_failure_aborts(self, store, clock):
        agent = MediaTransferAgent(ANALYSIS_URL, FakeBackupStorage(), session=FakeSession(status_code=503))
        coordinator = SubmissionCoordinator(store, agent, clock=clock)
        with pytest.raises(UpstreamError):
            coordinator.record("A1", "S1", b"video-bytes")
        # The provisional row remains, without media
        rows = store.query(student_id="S1")
        assert len(rows) == 1 and rows[0].media_url is None

    def test_backup_failure_still_succeeds(self, store, clock, session):
        agent = MediaTransferAgent(ANALYSIS_URL, FakeBackupStorage(fail=True), session=session)
        coordinator = SubmissionCoordinator(store, agent, clock=clock)
        submission = coordinator.record("A1", "S1", b"video-bytes")
        assert submission.media_url is None
        assert len(session.calls) == 1

    def test_unknown_assignment(self, coordinator, session):
        with pytest.raises(NotFoundError):
            coordinator.record("A9", "S1", b"video-bytes")
        assert session.calls == []

    def test_empty_video(self, coordinator):
        with pytest.raises(ValidationError):
            coordinator.record("A1", "S1", b"")


class TestListSubmissions:
    def test_student_sees_own(self, coordinator):
        coordinator.create_provisional("A1", "S1")
        coordinator.create_provisional("A1", "S2")
        rows = coordinator.list_submissions("student", student_id="S1")
        assert [r.student_id for r in rows] == ["S1"]

    def test_teacher_sees_all(self, coordinator):
        coordinator.create_provisional("A1", "S1")
        coordinator.create_provisional("A2", "S2")
        assert len(coordinator.list_submissions("teacher")) == 2
        assert len(coordinator.list_submissions("teacher", assignment_id="A2")) == 1

    def test_invalid_role(self, coordinator):
        with pytest.raises(ValidationError):
            coordinator.list_submissions("parent", student_id="S1")

    def test_student_requires_id(self, coordinator):
        with pytest.raises(ValidationError):
            coordinator.list_submissions("student")


def test_end_to_end(coordinator):
    submission = coordinator.create_provisional("A1", "S1")
    coordinator.attach_media(submission.id, MEDIA_URL)
    coordinator.ingest_feedback(submission.id, {
        "wordChoiceScore": 42,
        "wordChoiceDescription": "clear",
        "fillerWordList": "um, like",
    })

    rows = coordinator.list_submissions("student", student_id="S1")
    assert len(rows) == 1
    row = rows[0]
    assert row.media_url == MEDIA_URL
    assert row.feedback_for(Category.WORD_CHOICE) == WordChoiceFeedback(42, "clear")
    assert row.feedback_for(Category.FILLER_WORDS).list == ["um", "like"]
