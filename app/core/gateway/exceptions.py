from typing import Optional


class GatewayError(Exception):
    """Base error for the gateway; carries the HTTP status the boundary should use."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidIdentifier(GatewayError):
    """Table, view or column name outside the allowed character set."""

    status_code = 400


class UnknownReport(GatewayError):
    status_code = 404


class RecordNotFound(GatewayError):
    status_code = 404


class DatabaseError(GatewayError):
    """Driver, connection or constraint failure raised while running a statement."""

    status_code = 500
