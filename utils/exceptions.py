"""
Error taxonomy shared by the scan, confirm and sync flows.

Decryption, lookup and format failures are business outcomes: controllers
turn them into ``status: invalid`` responses with HTTP 200. Store outages
map to 503, anything else to 500.
"""


class PassgateError(Exception):
    """Base class for errors raised by passgate services"""

    message = "Passgate error"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class DecryptionError(PassgateError):
    message = "Invalid or corrupted QR code"


class NotFoundError(PassgateError):
    message = "Ticket not found in database"


class ValidationError(PassgateError):
    message = "Invalid Ticket Format"


class StoreUnavailableError(PassgateError):
    message = "Database unavailable"


class UnexpectedError(PassgateError):
    message = "Server error"
