"""
Speakeasy Services
==================

Business logic for the submission pipeline.

Services:
- feedback_normalizer: callback payload -> per-category feedback
- submission_store: persistence of submission rows
- media_transfer: analysis upload and backup copy of recordings
- submission_coordinator: the submission lifecycle
"""

# Services are imported directly when needed to avoid circular imports
# Example: from speakeasy.services.submission_coordinator import SubmissionCoordinator

__all__ = [
    'feedback_normalizer',
    'submission_store',
    'media_transfer',
    'submission_coordinator',
]
