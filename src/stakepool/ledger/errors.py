from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class PoolError(Exception):
    """Canonical error type for staking pool operations.

    Every PoolError aborts the whole call: no state change, no event.
    """

    code: str
    reason: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:  # pragma: no cover
        if not self.details:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


class AuthorizationError(PoolError):
    def __init__(self, caller: str, operation: str) -> None:
        super().__init__("unauthorized", "caller is not the owner", {"caller": caller, "operation": operation})


class InsufficientBalanceError(PoolError):
    def __init__(self, participant: str, amount: int, balance: int) -> None:
        super().__init__(
            "insufficient_balance",
            "withdraw amount exceeds balance",
            {"participant": participant, "amount": amount, "balance": balance},
        )


class InsufficientReserveError(PoolError):
    def __init__(self, amount: int, reserve: int) -> None:
        super().__init__(
            "insufficient_reserve",
            "remove amount exceeds total assets",
            {"amount": amount, "reserve": reserve},
        )


class InvalidAmountError(PoolError):
    def __init__(self, amount: Any, operation: str) -> None:
        super().__init__("invalid_amount", "amount must be a positive integer", {"amount": amount, "operation": operation})


class TransferFailedError(PoolError):
    def __init__(self, direction: str, account: str, amount: int) -> None:
        super().__init__(
            "transfer_failed",
            f"asset transfer {direction} failed",
            {"direction": direction, "account": account, "amount": amount},
        )


class ReentrancyError(PoolError):
    def __init__(self, operation: str, active: str) -> None:
        super().__init__("reentrant_call", "operation already in progress", {"operation": operation, "active": active})


class InvariantError(PoolError):
    def __init__(self, reason: str, **details: Any) -> None:
        super().__init__("invariant_violation", reason, dict(details))


__all__ = [
    "PoolError",
    "AuthorizationError",
    "InsufficientBalanceError",
    "InsufficientReserveError",
    "InvalidAmountError",
    "TransferFailedError",
    "ReentrancyError",
    "InvariantError",
]
