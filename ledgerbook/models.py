"""
Ledger Data Model

Accounts hold an integer-cent balance. Transactions are immutable records of
one movement of funds. Both convert to and from the flat row shape used by
the storage adapters.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


ACCOUNT_FIELDS = ("account_id", "name", "balance_cents")
TRANSACTION_FIELDS = ("ts_iso", "tx_id", "type", "from", "to", "amount_cents", "note")


def is_cents(value: str) -> bool:
    """Non-empty and made only of ASCII decimal digits"""
    return bool(value) and value.isascii() and value.isdigit()


class TransactionType(Enum):
    """Kinds of balance movement"""
    DEPOSIT = "deposit"      # external -> to_id
    WITHDRAW = "withdraw"    # from_id -> external
    TRANSFER = "transfer"    # from_id -> to_id


@dataclass
class Account:
    """
    A named holder of a cent-denominated balance.
    Only the engine mutates the balance.
    """
    id: str
    name: str
    balance: int = 0

    def to_row(self) -> List[str]:
        return [self.id, self.name, str(self.balance)]

    @classmethod
    def from_row(cls, row: List[str]) -> "Account":
        """
        Parse an accounts row.

        Raises:
            ValueError: wrong field count or a balance that is not plain digits
        """
        if len(row) != len(ACCOUNT_FIELDS):
            raise ValueError(f"Expected {len(ACCOUNT_FIELDS)} fields, got {len(row)}")
        account_id, name, balance = row
        if not is_cents(balance):
            raise ValueError(f"Invalid amount: {balance}")
        return cls(id=account_id, name=name, balance=int(balance))


@dataclass(frozen=True)
class Transaction:
    """
    One ledger row. from_id is empty for deposits, to_id is empty for
    withdrawals, both are set for transfers.
    """
    timestamp: str
    tx_id: str
    type: TransactionType
    from_id: str
    to_id: str
    amount_cents: int
    note: str = ""

    def involves(self, account_id: str) -> bool:
        """True when the account is either party"""
        return self.from_id == account_id or self.to_id == account_id

    def to_row(self) -> List[str]:
        return [
            self.timestamp,
            self.tx_id,
            self.type.value,
            self.from_id,
            self.to_id,
            str(self.amount_cents),
            self.note,
        ]

    @property
    def numeric_id(self) -> Optional[int]:
        """tx_id as an integer, or None when it is not a decimal string"""
        if is_cents(self.tx_id):
            return int(self.tx_id)
        return None

    @classmethod
    def from_row(cls, row: List[str]) -> "Transaction":
        """
        Parse a ledger row.

        Rows written without quoting may carry commas inside the note; any
        fields past the sixth are joined back into the note.

        Raises:
            ValueError: too few fields, unknown type, or a bad amount
        """
        if len(row) < len(TRANSACTION_FIELDS) - 1:
            raise ValueError(f"Expected {len(TRANSACTION_FIELDS)} fields, got {len(row)}")
        ts_iso, tx_id, type_value, from_id, to_id, amount = row[:6]
        note = ",".join(row[6:])
        if not is_cents(amount):
            raise ValueError(f"Invalid amount: {amount}")
        try:
            tx_type = TransactionType(type_value)
        except ValueError:
            raise ValueError(f"Unknown transaction type: {type_value}")
        return cls(
            timestamp=ts_iso,
            tx_id=tx_id,
            type=tx_type,
            from_id=from_id,
            to_id=to_id,
            amount_cents=int(amount),
            note=note,
        )
