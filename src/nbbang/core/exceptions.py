#!/usr/bin/env python3
"""
Settlement Exceptions

Every error carries an HTTP-style status code and a user-facing detail
message so an outer API layer can surface it directly.
"""


class NbbangError(Exception):
    """Base class for all settlement errors."""

    status_code = 500

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(NbbangError):
    """Raised when a meeting, member or payment does not exist."""

    status_code = 404


class MeetingNotFoundError(NotFoundError):
    def __init__(self, meeting_id: int | str):
        super().__init__(f"Meeting not found: {meeting_id}")


class MemberNotFoundError(NotFoundError):
    def __init__(self, member_id: int):
        super().__init__(f"Member not found: {member_id}")


class PaymentNotFoundError(NotFoundError):
    def __init__(self, payment_id: int):
        super().__init__(f"Payment not found: {payment_id}")


class SharePageNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("공유된 정산이 삭제되었거나 유효하지 않습니다.")


class IncompleteShareError(NbbangError):
    """Raised when a shared settlement has no members or payments yet."""

    status_code = 204

    def __init__(self) -> None:
        super().__init__("공유된 정산은 완료되지 않았습니다.")


class MeetingUserMismatchError(NbbangError):
    """Raised when the caller does not own the meeting."""

    status_code = 403

    def __init__(self, user_id: int, meeting_id: int):
        super().__init__(f"{user_id} 사용자는 {meeting_id} 모임의 관리자가 아닙니다.")
        self.user_id = user_id
        self.meeting_id = meeting_id


class InvariantViolationError(NbbangError):
    """Raised when a request would break a ledger invariant. Nothing is mutated."""

    status_code = 409


class LeaderAlreadyExistsError(InvariantViolationError):
    def __init__(self) -> None:
        super().__init__("이미 리더가 있습니다.")


class LeaderDeleteError(InvariantViolationError):
    def __init__(self) -> None:
        super().__init__("리더 멤버는 삭제할 수 없습니다.")


class MemberInPaymentDeleteError(InvariantViolationError):
    def __init__(self) -> None:
        super().__init__("결제내역에 포함된 멤버는 삭제할 수 없습니다.")


class NotTripMeetingError(InvariantViolationError):
    def __init__(self, meeting_id: int | None = None):
        super().__init__(f"Meeting {meeting_id} is not a trip meeting")


class LeaderNotFoundError(InvariantViolationError):
    def __init__(self, meeting_id: int | None = None):
        super().__init__(f"Leader not found for meeting {meeting_id}")


class InvalidRequestError(InvariantViolationError):
    """Malformed or inconsistent request data."""

    status_code = 400


class RateSourceError(NbbangError):
    """Raised when the external exchange-rate source fails."""

    status_code = 502


class RateResolutionError(NbbangError):
    """Raised when a payment write needs an exchange rate and none is usable."""

    status_code = 502

    def __init__(self, currency: str, reason: str):
        super().__init__(f"Failed to fetch exchange rate for {currency}: {reason}")
        self.currency = currency
