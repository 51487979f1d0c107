# app/core/errors.py
"""Expected, user-facing attendance outcomes.

Services raise these; the app-level handler in ``app.main`` turns them into
``{"status": "error", "code": ..., "message": ...}`` responses.
"""


class AttendanceError(Exception):
    code = "ATTENDANCE_ERROR"
    status_code = 400
    default_message = "Attendance request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"status": "error", "code": self.code, "message": self.message}


class AlreadyInGym(AttendanceError):
    code = "ALREADY_IN_GYM"
    status_code = 409
    default_message = "You are already checked in. Use the Check Out button to leave."


class NotInGym(AttendanceError):
    code = "NOT_IN_GYM"
    status_code = 400
    default_message = "You are not currently checked in."


class MemberNotFound(AttendanceError):
    code = "MEMBER_NOT_FOUND"
    status_code = 404
    default_message = "You are not a member of this gym"


class InvalidQrCode(AttendanceError):
    code = "INVALID_QR"
    status_code = 400
    default_message = "Invalid QR code. The code may have been updated."


class QrDisabled(InvalidQrCode):
    default_message = "QR attendance is currently disabled for this gym"


class MembershipInactive(AttendanceError):
    code = "MEMBERSHIP_INACTIVE"
    status_code = 403
    default_message = "Your membership is not active"
