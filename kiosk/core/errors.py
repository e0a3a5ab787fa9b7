"""
core/errors.py – Domain errors raised by the ledger, cart and flows.
`str(err)` is the message shown to the card holder.
"""


class KioskError(Exception):
    """Base class for every user-facing kiosk failure."""


class NotRegisteredError(KioskError):
    def __init__(self, tag_id: str) -> None:
        super().__init__("Card not registered. Please register your card.")
        self.tag_id = tag_id


class InsufficientFundsError(KioskError):
    def __init__(self, balance: float, total: float, currency: str = "Rs.") -> None:
        super().__init__(f"Insufficient funds. Your balance is {currency} {balance:.2f}")
        self.balance = balance
        self.total = total


class DuplicatePhoneError(KioskError):
    def __init__(self, phone_number: str) -> None:
        super().__init__("This phone number is already registered.")
        self.phone_number = phone_number


class CardAlreadyLinkedError(KioskError):
    def __init__(self, tag_id: str) -> None:
        super().__init__("This card is already linked to an account.")
        self.tag_id = tag_id


class EmptyCartError(KioskError):
    def __init__(self) -> None:
        super().__init__("Your cart is empty.")


class InvalidTransitionError(KioskError):
    """Action not allowed in the flow's current state."""

    def __init__(self, flow: str, state: str, action: str) -> None:
        super().__init__(f"Cannot {action} while {flow} is in state '{state}'.")
        self.state = state


GENERIC_FAILURE = "An unexpected error occurred."
