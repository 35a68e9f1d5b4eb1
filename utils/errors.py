class ClinicError(Exception):
    """Base class for failures that are reported to the caller as
    ``{"success": False, "message": ...}``."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ClinicError):
    pass


class AuthError(ClinicError):
    pass


class NotFoundError(ClinicError):
    pass


class ConflictError(ClinicError):
    pass


class UnavailableError(ClinicError):
    pass


class SlotTakenError(ClinicError):
    pass


class CancelledError(ClinicError):
    pass


class UploadError(ClinicError):
    pass


class GatewayError(ClinicError):
    pass
