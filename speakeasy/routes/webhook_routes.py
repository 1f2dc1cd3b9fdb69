"""
Webhook Routes for Speakeasy.
Receives the analysis service's feedback callback. The callback is
trusted by submission ID alone.
"""
import logging

from flask import Blueprint, jsonify, current_app

from speakeasy.errors import InternalError, SpeakeasyError
from speakeasy.routes.request_helpers import json_object_body

webhook_bp = Blueprint('webhook', __name__)
logger = logging.getLogger(__name__)


@webhook_bp.route('/api/webhook/feedback', methods=['POST'])
@webhook_bp.route('/api/feedback-callback', methods=['POST'])
def receive_feedback():
    """Store per-category feedback for a submission."""
    try:
        data = json_object_body()
        submission_id = data.get('submissionId')
        if not submission_id:
            return jsonify({"error": "Missing submission ID"}), 400

        logger.info("Received feedback for submission: %s", submission_id)
        logger.debug("Feedback payload keys: %s", sorted(data))

        coordinator = current_app.extensions['speakeasy_coordinator']
        submission = coordinator.ingest_feedback(submission_id, data)
        return jsonify({
            "message": "Feedback updated successfully",
            "data": submission.to_dict(),
        })
    except SpeakeasyError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        logger.exception("Error updating feedback")
        error = InternalError()
        return jsonify(error.to_dict()), error.status_code
