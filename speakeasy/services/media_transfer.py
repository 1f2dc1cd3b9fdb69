"""
Media Transfer
==============
Ships a recorded video to the external analysis endpoint and keeps a
backup copy in storage.

The analysis request is the point of the whole recording flow: if it
fails, dispatch() raises UpstreamError. The backup upload is best-effort;
a failure is logged and the returned reference simply has no URL.
"""
import concurrent.futures
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import requests

from speakeasy.errors import UpstreamError

logger = logging.getLogger(__name__)

MEDIA_TYPES = {
    "webm": "video/webm",
    "mp4": "video/mp4",
    "mov": "video/quicktime",
    "mkv": "video/x-matroska",
}


def content_type_for(media_format: str) -> str:
    return MEDIA_TYPES.get((media_format or "").lower(), "application/octet-stream")


@dataclass
class MediaMetadata:
    """What the analysis service is told about a recording."""

    student_id: str
    assignment_id: str
    submission_id: str
    assignment_title: str
    assignment_description: str
    submitted_at: datetime
    media_format: str = "webm"

    def form_fields(self, size: int) -> dict:
        return {
            "studentId": self.student_id,
            "assignmentId": self.assignment_id,
            "submissionId": self.submission_id,
            "assignmentTitle": self.assignment_title,
            "assignmentDescription": self.assignment_description,
            "submittedAt": self.submitted_at.isoformat(),
            "videoFormat": self.media_format,
            "videoSize": str(size),
        }


@dataclass
class BackupReference:
    path: str
    url: Optional[str] = None

    @property
    def uploaded(self) -> bool:
        return self.url is not None


# =============================================================================
# BACKUP STORAGE
# =============================================================================

class BackupStorage(ABC):
    """Blob storage that hands out public URLs."""

    @abstractmethod
    def upload(self, path: str, blob: bytes, content_type: str) -> None:
        pass

    @abstractmethod
    def public_url(self, path: str) -> str:
        pass


class SupabaseBackupStorage(BackupStorage):
    """A public Supabase Storage bucket."""

    def __init__(self, client, bucket: str = "videos"):
        self.client = client
        self.bucket = bucket

    def upload(self, path, blob, content_type):
        self.client.storage.from_(self.bucket).upload(
            path, blob, {"content-type": content_type}
        )

    def public_url(self, path):
        return self.client.storage.from_(self.bucket).get_public_url(path)


# =============================================================================
# DISPATCH
# =============================================================================

class MediaTransferAgent:
    """Sends recordings to the analysis endpoint and to backup storage.

    Args:
        analysis_url: Analysis webhook receiving the multipart upload
        backup: BackupStorage for the redundant copy
        session: requests.Session (or anything with a compatible post())
        timeout: Seconds to wait for the analysis endpoint; None waits forever
    """

    def __init__(self, analysis_url: str, backup: BackupStorage, session=None, timeout=None):
        if not analysis_url:
            raise ValueError("Analysis webhook URL not configured. Check ANALYSIS_WEBHOOK_URL in .env")
        self.analysis_url = analysis_url
        self.backup = backup
        self.session = session or requests.Session()
        self.timeout = timeout

    def dispatch(self, blob: bytes, metadata: MediaMetadata) -> BackupReference:
        """Send ``blob`` for analysis and back it up, concurrently.

        Raises UpstreamError if the analysis endpoint does not accept it.
        """
        with concurrent.futures.ThreadPoolExecutor(max_workers=2) as pool:
            analysis = pool.submit(self.send_for_analysis, blob, metadata)
            backup = pool.submit(self.upload_backup, blob, metadata)
            analysis.result()
            reference = backup.result()

        logger.info("Dispatched submission %s (%d bytes, backup=%s)",
                    metadata.submission_id, len(blob), reference.url or "none")
        return reference

    def send_for_analysis(self, blob: bytes, metadata: MediaMetadata) -> None:
        filename = f"recording.{metadata.media_format}"
        files = {"video": (filename, blob, content_type_for(metadata.media_format))}
        try:
            response = self.session.post(
                self.analysis_url,
                data=metadata.form_fields(len(blob)),
                files=files,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Analysis webhook unreachable for submission %s: %s", metadata.submission_id, e)
            raise UpstreamError(f"Webhook failed: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error("Analysis webhook returned %s for submission %s",
                         response.status_code, metadata.submission_id)
            raise UpstreamError(f"Webhook failed: {response.status_code}",
                                upstream_status=response.status_code)

    def upload_backup(self, blob: bytes, metadata: MediaMetadata) -> BackupReference:
        path = backup_path(metadata.student_id, metadata.assignment_id, metadata.media_format)
        try:
            self.backup.upload(path, blob, content_type_for(metadata.media_format))
            url = self.backup.public_url(path)
        except Exception as e:
            logger.warning("Backup upload failed for %s: %s", path, e)
            return BackupReference(path=path)
        return BackupReference(path=path, url=url)


def backup_path(student_id: str, assignment_id: str, media_format: str, timestamp_ms: int = None) -> str:
    """Storage key: {studentId}/{assignmentId}/{timestamp}.{ext}"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{student_id}/{assignment_id}/{timestamp_ms}.{media_format}"
