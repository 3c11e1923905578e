"""
Exceptions raised by the whitelist service layer.

Each exception carries the HTTP status code and the client-facing
message used by the exception handler in ``main``.  Storage failures
are not part of this hierarchy; they propagate unchanged and are
reported as a generic internal error.
"""


class WhitelistError(Exception):
    """Base exception for client-facing whitelist errors"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(WhitelistError):
    """A required field is missing or has the wrong type"""
    pass


class InvalidFormat(WhitelistError):
    """The address does not match the wallet address pattern"""

    def __init__(self, message: str = "Invalid Ethereum address format"):
        super().__init__(message)


class AlreadyRegistered(WhitelistError):
    """The normalized address is already on the whitelist"""

    status_code = 409

    def __init__(self, registration=None, message: str = "Address already registered"):
        super().__init__(message)
        # RegistrationRead of the existing entry, if it could be read back
        self.registration = registration


class NotFound(WhitelistError):
    """No registration matched the requested address"""

    status_code = 404

    def __init__(self, message: str = "Address not found"):
        super().__init__(message)
