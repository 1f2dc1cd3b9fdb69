"""
Request parsing shared by the route blueprints.
"""
from flask import request

from speakeasy.errors import ValidationError


def json_object_body():
    """Return the JSON request body, which must be an object (or absent)."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
