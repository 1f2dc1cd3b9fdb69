"""
Speakeasy Errors
================
Error taxonomy shared by the services and the HTTP layer.

Every error carries the HTTP status the routes answer with, so a route
only needs:

    except SpeakeasyError as e:
        return jsonify(e.to_dict()), e.status_code
"""


class SpeakeasyError(Exception):
    """Base error for the submission pipeline."""

    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"error": self.message}


class ValidationError(SpeakeasyError):
    """Missing or malformed required field (client's fault)."""

    status_code = 400

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field

    def to_dict(self):
        body = super().to_dict()
        if self.field:
            body["field"] = self.field
        return body


class NotFoundError(SpeakeasyError):
    """Referenced submission or assignment does not exist."""

    status_code = 404


class UpstreamError(SpeakeasyError):
    """The external analysis endpoint failed or answered non-2xx."""

    status_code = 502

    def __init__(self, message, upstream_status=None):
        super().__init__(message)
        self.upstream_status = upstream_status


class InternalError(SpeakeasyError):
    """Unexpected failure. The detail is logged, never returned."""

    status_code = 500

    def __init__(self, message="Internal server error"):
        super().__init__(message)
