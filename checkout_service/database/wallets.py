"""Wallet balances and ledger storage"""

import threading
from datetime import datetime, timezone
from typing import Optional

from ..models.wallet import WalletLedgerEntry, LedgerDirection
from ..services.errors import InsufficientWalletBalance


class WalletDatabase:
    """In-memory per-user wallet with an append-only ledger"""

    def __init__(self):
        self.balances: dict[str, float] = {}
        self.ledger: list[WalletLedgerEntry] = []
        self._lock = threading.Lock()

    def get_balance(self, user_id: str) -> float:
        with self._lock:
            return self.balances.get(user_id, 0.0)

    def entries_for(self, user_id: str) -> list[WalletLedgerEntry]:
        with self._lock:
            return [e for e in self.ledger if e.user_id == user_id]

    def _find_entry(
        self,
        user_id: str,
        direction: LedgerDirection,
        reference_type: str,
        reference_id: str,
    ) -> Optional[WalletLedgerEntry]:
        return next(
            (
                e for e in self.ledger
                if e.user_id == user_id
                and e.direction == direction
                and e.reference_type == reference_type
                and e.reference_id == reference_id
            ),
            None,
        )

    def debit(
        self,
        user_id: str,
        amount: float,
        reference_type: str,
        reference_id: str,
        description: Optional[str] = None,
    ) -> WalletLedgerEntry:
        """
        Atomically debit the wallet if the current balance covers the amount.

        At most one debit exists per (reference_type, reference_id); repeating
        the call returns the original entry without touching the balance.

        Raises:
            InsufficientWalletBalance: balance at debit time is below amount
        """
        with self._lock:
            existing = self._find_entry(user_id, LedgerDirection.DEBIT, reference_type, reference_id)
            if existing:
                return existing

            balance = self.balances.get(user_id, 0.0)
            if balance + 1e-9 < amount:
                raise InsufficientWalletBalance(
                    f"Wallet balance {balance:.2f} is below the requested {amount:.2f}"
                )

            new_balance = round(balance - amount, 2)
            self.balances[user_id] = new_balance
            entry = WalletLedgerEntry(
                user_id=user_id,
                direction=LedgerDirection.DEBIT,
                amount=amount,
                balance_after=new_balance,
                reference_type=reference_type,
                reference_id=reference_id,
                description=description,
                created_at=datetime.now(timezone.utc),
            )
            self.ledger.append(entry)
            return entry

    def credit(
        self,
        user_id: str,
        amount: float,
        reference_type: str,
        reference_id: str,
        description: Optional[str] = None,
    ) -> WalletLedgerEntry:
        """Credit the wallet; idempotent per reference like debit"""
        with self._lock:
            existing = self._find_entry(user_id, LedgerDirection.CREDIT, reference_type, reference_id)
            if existing:
                return existing

            new_balance = round(self.balances.get(user_id, 0.0) + amount, 2)
            self.balances[user_id] = new_balance
            entry = WalletLedgerEntry(
                user_id=user_id,
                direction=LedgerDirection.CREDIT,
                amount=amount,
                balance_after=new_balance,
                reference_type=reference_type,
                reference_id=reference_id,
                description=description,
                created_at=datetime.now(timezone.utc),
            )
            self.ledger.append(entry)
            return entry


# Singleton instance
wallet_db = WalletDatabase()
