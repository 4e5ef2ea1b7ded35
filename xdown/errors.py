"""Error types and the JSON error envelope."""

from flask import jsonify


class XdownError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class InvalidReference(XdownError):
    """No video ID could be extracted from the input."""
    status_code = 400


class NoSourceAvailable(XdownError):
    """Every configured source failed or answered empty."""
    status_code = 404


class FormatUnavailable(XdownError):
    """The requested itag/quality/container does not exist."""
    status_code = 404


class UpstreamFailure(XdownError):
    """A dependency failed with a network or parse error."""
    status_code = 500


def error_response(message, status, **extra):
    body = {'status': 'error', 'message': message}
    body.update(extra)
    return jsonify(body), status
