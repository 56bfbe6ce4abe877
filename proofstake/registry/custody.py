"""Custody protocol - where staked and deposited value is held.

Implementations: LocalCustody (in-process balance). A token or native
currency ledger can be plugged in behind the same interface.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@runtime_checkable
class Custody(Protocol):
    """Abstract interface for holding and releasing registry value."""

    @property
    def balance(self) -> int:
        """Total value currently held."""
        ...

    def credit(self, amount: int) -> None:
        """Take custody of ``amount``."""
        ...

    def transfer_all(self, to: str) -> int:
        """Send the entire balance to ``to``. Returns the amount sent."""
        ...


@dataclass
class Transfer:
    """An outbound value movement."""

    to: str
    amount: int


@dataclass
class LocalCustody:
    """In-memory Custody implementation."""

    _balance: int = 0
    transfers: list[Transfer] = field(default_factory=list)

    @property
    def balance(self) -> int:
        return self._balance

    def credit(self, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"cannot credit negative amount {amount}")
        self._balance += amount

    def transfer_all(self, to: str) -> int:
        amount = self._balance
        self._balance = 0
        self.transfers.append(Transfer(to=to, amount=amount))
        return amount


__all__ = ["Custody", "LocalCustody", "Transfer"]
