"""Domain error codes for the booking module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_INPUT = "INVALID_INPUT"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_NOT_OPEN = "SESSION_NOT_OPEN"
    INSUFFICIENT_CAPACITY = "INSUFFICIENT_CAPACITY"
    ALREADY_BOOKED = "ALREADY_BOOKED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    BOOKING_ALREADY_CANCELLED = "BOOKING_ALREADY_CANCELLED"
    BOOKING_FORBIDDEN = "BOOKING_FORBIDDEN"
    INVALID_ORDER_TRANSITION = "INVALID_ORDER_TRANSITION"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    PAYMENT_PROCESSOR_ERROR = "PAYMENT_PROCESSOR_ERROR"
    CHECKOUT_INCOMPLETE = "CHECKOUT_INCOMPLETE"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Raised when required input is missing or malformed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(code=ErrorCode.INVALID_INPUT, message=message)
        self.field = field


class ProductNotFoundError(DomainError):
    """Raised when a product is not found."""

    def __init__(self, product_id: str) -> None:
        super().__init__(
            code=ErrorCode.PRODUCT_NOT_FOUND,
            message="Product not found",
        )
        self.product_id = product_id


class CapacityError(DomainError):
    """A normal business outcome: the seats cannot be had. Never retried."""


class SessionNotFoundError(CapacityError):
    """Raised when a session does not exist."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            code=ErrorCode.SESSION_NOT_FOUND,
            message="Session not found",
        )
        self.session_id = session_id


class SessionNotOpenError(CapacityError):
    """Raised when a session is full, cancelled, in progress or completed."""

    def __init__(self, session_id: str, status: str) -> None:
        super().__init__(
            code=ErrorCode.SESSION_NOT_OPEN,
            message=f"Session is not open for booking (status: {status})",
        )
        self.session_id = session_id
        self.status = status


class InsufficientCapacityError(CapacityError):
    """Raised when fewer spots remain than were requested."""

    def __init__(self, session_id: str, needed: int, available: int) -> None:
        super().__init__(
            code=ErrorCode.INSUFFICIENT_CAPACITY,
            message=f"Not enough spots. Need {needed}, available: {available}",
        )
        self.session_id = session_id
        self.needed = needed
        self.available = available


class AlreadyBookedError(CapacityError):
    """Raised when the user already holds a live booking for the session."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_BOOKED,
            message="You already have a booking for this session",
        )
        self.session_id = session_id


class UserNotFoundError(DomainError):
    """Raised when a split participant has no account."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.USER_NOT_FOUND,
            message="No account for this email. They must sign up first.",
        )


class BookingNotFoundError(DomainError):
    """Raised when a booking is not found."""

    def __init__(self, booking_id: str) -> None:
        super().__init__(
            code=ErrorCode.BOOKING_NOT_FOUND,
            message="Booking not found",
        )
        self.booking_id = booking_id


class BookingAlreadyCancelledError(DomainError):
    """Raised when cancelling a booking twice."""

    def __init__(self, booking_id: str) -> None:
        super().__init__(
            code=ErrorCode.BOOKING_ALREADY_CANCELLED,
            message="Booking is already cancelled",
        )
        self.booking_id = booking_id


class BookingForbiddenError(DomainError):
    """Raised when a user acts on a booking they do not own."""

    def __init__(self, booking_id: str) -> None:
        super().__init__(
            code=ErrorCode.BOOKING_FORBIDDEN,
            message="You do not own this booking",
        )
        self.booking_id = booking_id


class InvalidOrderTransitionError(DomainError):
    """Raised when an order status change is not allowed."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_ORDER_TRANSITION,
            message=f"Order cannot move from {current} to {target}",
        )
        self.current = current
        self.target = target


class TransientStoreError(DomainError):
    """Raised when the store is unreachable or times out. Safe to retry."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            code=ErrorCode.STORE_UNAVAILABLE,
            message="Booking service temporarily unavailable",
        )
        self.operation = operation


class PaymentProcessorError(DomainError):
    """Raised when the payment processor fails.

    booking_id is set when seats were already reserved, so the hold can be
    released or reconciled by the caller.
    """

    def __init__(self, message: str, booking_id: str | None = None) -> None:
        super().__init__(code=ErrorCode.PAYMENT_PROCESSOR_ERROR, message=message)
        self.booking_id = booking_id


class CheckoutIncompleteError(DomainError):
    """Raised when a store write fails after seats were reserved.

    Not retryable: the booking is held and a charge may already exist, so the
    caller must reconcile by booking_id and payment_reference.
    """

    def __init__(self, booking_id: str, payment_reference: str | None = None) -> None:
        super().__init__(
            code=ErrorCode.CHECKOUT_INCOMPLETE,
            message="Checkout could not be completed; your reservation is on hold",
        )
        self.booking_id = booking_id
        self.payment_reference = payment_reference
