"""
Submission Routes for Speakeasy.
Provisional submission creation, media attachment, the server-side
recording flow, and submission listing for students and teachers.
"""
import logging
import os

from flask import Blueprint, request, jsonify, current_app

from speakeasy.config import SUPPORTED_VIDEO_FORMATS
from speakeasy.errors import InternalError, SpeakeasyError, ValidationError
from speakeasy.routes.request_helpers import json_object_body

submission_bp = Blueprint('submissions', __name__)
logger = logging.getLogger(__name__)


def _coordinator():
    return current_app.extensions['speakeasy_coordinator']


def _internal_error(action):
    logger.exception("Error %s", action)
    error = InternalError()
    return jsonify(error.to_dict()), error.status_code


@submission_bp.route('/api/submissions', methods=['POST'])
def create_submission():
    """Create a provisional submission. Media is attached later."""
    try:
        data = json_object_body()
        submission = _coordinator().create_provisional(
            data.get('assignmentId'), data.get('studentId')
        )
        return jsonify(submission.to_dict()), 201
    except SpeakeasyError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return _internal_error("creating submission")


@submission_bp.route('/api/submissions/<submission_id>', methods=['PATCH'])
def attach_media(submission_id):
    """Attach the backup media URL to a provisional submission."""
    try:
        data = json_object_body()
        submission = _coordinator().attach_media(submission_id, data.get('mediaUrl'))
        return jsonify(submission.to_dict())
    except SpeakeasyError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return _internal_error("attaching media")


@submission_bp.route('/api/submissions', methods=['GET'])
def list_submissions():
    """
    List submissions, newest first.
    Students only get their own; teachers get all, optionally per assignment.
    """
    try:
        student_id = request.args.get('studentId') or request.args.get('userId')
        submissions = _coordinator().list_submissions(
            role=request.args.get('role'),
            student_id=student_id,
            assignment_id=request.args.get('assignmentId'),
        )
        return jsonify([s.to_dict() for s in submissions])
    except SpeakeasyError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return _internal_error("fetching submissions")


@submission_bp.route('/api/assignments/<assignment_id>/submit', methods=['POST'])
def submit_assignment(assignment_id):
    """One-shot submission for a video the client uploaded itself."""
    try:
        data = json_object_body()
        submission = _coordinator().submit_with_url(
            assignment_id, data.get('studentId'), data.get('videoUrl')
        )
        return jsonify(submission.to_dict())
    except SpeakeasyError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return _internal_error("submitting assignment")


@submission_bp.route('/api/assignments/<assignment_id>/record', methods=['POST'])
def record_response(assignment_id):
    """
    Accept a recorded video (multipart field 'video'), send it for analysis
    and back it up. Answers 502 if the analysis service rejects it.
    """
    try:
        video = request.files.get('video')
        if video is None:
            raise ValidationError("Missing video", field="video")

        media_format = request.form.get('videoFormat')
        if not media_format:
            _, ext = os.path.splitext(video.filename or "")
            media_format = ext.lstrip('.') or 'webm'
        media_format = media_format.lower()
        if media_format not in SUPPORTED_VIDEO_FORMATS:
            raise ValidationError(f"Unsupported video format: {media_format}", field="videoFormat")

        submission = _coordinator().record(
            assignment_id, request.form.get('studentId'), video.read(), media_format
        )
        return jsonify(submission.to_dict()), 201
    except SpeakeasyError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return _internal_error("processing recording")
