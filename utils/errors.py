"""
Error taxonomy shared by services and routes.

Every error carries an HTTP status and a translation key; the application's
error handler turns it into a localized JSON response.
"""


class ApiError(Exception):
    status_code = 500
    message_key = 'error_server'

    def __init__(self, message_key=None, detail=None):
        super().__init__(message_key or self.message_key)
        if message_key:
            self.message_key = message_key
        # Operational detail for logs and admins, never rendered for guests
        self.detail = detail


class BadRequest(ApiError):
    status_code = 400
    message_key = 'error_bad_request'


class Unauthorized(ApiError):
    status_code = 401
    message_key = 'error_unauthorized'


class NotFound(ApiError):
    status_code = 404
    message_key = 'error_not_found'


class Conflict(ApiError):
    status_code = 409
    message_key = 'error_conflict'


class InvalidLink(ApiError):
    """Token missing, expired or already used, as seen by a guest."""
    status_code = 400
    message_key = 'link_invalid'


class ServerError(ApiError):
    status_code = 500
    message_key = 'error_server'
