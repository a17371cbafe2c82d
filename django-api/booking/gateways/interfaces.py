"""Payment processor interface.

The core only creates charge intents, issues refunds and reads back
confirmations; capture happens on the processor side.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ChargeIntent:
    reference: str
    client_secret: str


@dataclass(frozen=True)
class PaymentConfirmation:
    reference: str
    succeeded: bool
    metadata: dict[str, str] = field(default_factory=dict)


class PaymentGateway(ABC):
    """Interface for payment processor calls.

    Implementations raise PaymentProcessorError for processor failures.
    """

    @abstractmethod
    def create_customer(self, user_id: str, email: str | None) -> str:
        """Register the user with the processor and return its customer reference."""
        ...

    @abstractmethod
    def create_charge_intent(
        self, amount: int, customer_ref: str, metadata: dict[str, str]
    ) -> ChargeIntent:
        """Create a charge intent for amount (minor units) against customer_ref."""
        ...

    @abstractmethod
    def refund(self, reference: str, amount: int, idempotency_key: str | None = None) -> None:
        """Refund amount (minor units) of the charge; repeats with one key refund once."""
        ...

    @abstractmethod
    def parse_confirmation(self, payload: bytes, signature: str) -> PaymentConfirmation | None:
        """Verify and decode a processor callback.

        Returns None for event types the core does not act on.

        Raises:
            ValidationError: If the signature is missing or invalid.
        """
        ...
