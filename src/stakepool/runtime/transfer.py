# src/stakepool/runtime/transfer.py
from __future__ import annotations

"""Fungible-asset transfer collaborator.

The pool never moves value itself. It calls an AssetTransfer:

  transfer_into(source, amount)        -> True on success, False on failure
  transfer_out_of(destination, amount) -> True on success, False on failure

InMemoryAssetLedger is a complete single-asset ledger implementing that
contract against a custody account. It backs the dev API server and tests.
"""

import logging
import threading
from typing import Dict, Protocol

from stakepool.runtime.logging_util import log_event

POOL_CUSTODY_ACCOUNT: str = "POOL"

log = logging.getLogger("stakepool.transfer")


class AssetTransfer(Protocol):
    def transfer_into(self, source: str, amount: int) -> bool:
        ...

    def transfer_out_of(self, destination: str, amount: int) -> bool:
        ...


class InMemoryAssetLedger:
    def __init__(self, *, symbol: str = "STK", custody_account: str = POOL_CUSTODY_ACCOUNT) -> None:
        self.symbol = str(symbol)
        self.custody_account = str(custody_account)
        self._balances: Dict[str, int] = {}
        self._supply = 0
        self._lock = threading.RLock()

    def balance_of(self, account: str) -> int:
        with self._lock:
            return int(self._balances.get(str(account), 0))

    @property
    def total_supply(self) -> int:
        return int(self._supply)

    def mint(self, account: str, amount: int) -> None:
        a = int(amount)
        if a <= 0:
            raise ValueError(f"mint amount must be > 0; got: {amount}")
        with self._lock:
            self._balances[str(account)] = self.balance_of(account) + a
            self._supply += a

    def transfer(self, source: str, destination: str, amount: int) -> bool:
        a = int(amount)
        with self._lock:
            if a <= 0 or self.balance_of(source) < a:
                log_event(log, "transfer_rejected", source=source, destination=destination, amount=a)
                return False
            self._balances[str(source)] = self.balance_of(source) - a
            self._balances[str(destination)] = self.balance_of(destination) + a
        return True

    def transfer_into(self, source: str, amount: int) -> bool:
        return self.transfer(source, self.custody_account, amount)

    def transfer_out_of(self, destination: str, amount: int) -> bool:
        return self.transfer(self.custody_account, destination, amount)


__all__ = ["AssetTransfer", "InMemoryAssetLedger", "POOL_CUSTODY_ACCOUNT"]
