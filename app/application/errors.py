"""
Error taxonomy shared by the services and the HTTP front-door.

Every error carries the HTTP status it maps to and an Indonesian message
that is returned to the client as a text/plain body.
"""


class LedgerError(Exception):
    """Base class for errors surfaced to API callers"""
    status_code = 500
    default_message = "Terjadi kesalahan"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidArgument(LedgerError, ValueError):
    """Client-fixable input error"""
    status_code = 400
    default_message = "Data tidak valid"


class NotAuthenticated(LedgerError):
    status_code = 401
    default_message = "Tidak terautentikasi"


class NotFound(LedgerError):
    status_code = 404
    default_message = "Data tidak ditemukan"


class Conflict(LedgerError):
    """Unique-constraint violation. The public API reports it as 400."""
    status_code = 400
    default_message = "Data sudah ada"


class StorageFailure(LedgerError):
    status_code = 500
    default_message = "Gagal mengakses database"


class UpstreamFailure(LedgerError):
    """
    Push endpoint failure.

    Collected per endpoint in DispatchReport.failures and logged, never
    raised to an HTTP caller.
    """
    status_code = 502
    default_message = "Push endpoint gagal"

    def __init__(self, message: str | None = None, upstream_status: int = 0):
        super().__init__(message)
        # HTTP status from the push service, 0 when no response was received
        self.upstream_status = upstream_status
