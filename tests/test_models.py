"""
Test suite for the ledger data model

Covers row conversion and the validation applied to persisted rows.
"""

import pytest

from ledgerbook.models import Account, Transaction, TransactionType, is_cents


class TestIsCents:
    """Test the numeric-field check used on load"""

    def test_plain_digits(self):
        assert is_cents("0")
        assert is_cents("0000012345")

    def test_rejects_empty_signed_and_decimal(self):
        assert not is_cents("")
        assert not is_cents("-5")
        assert not is_cents("+5")
        assert not is_cents("1.50")
        assert not is_cents(" 5")

    def test_rejects_non_ascii_digits(self):
        assert not is_cents("²")
        assert not is_cents("١٢")


class TestAccount:
    """Test Account row conversion"""

    def test_to_row(self):
        account = Account(id="A001", name="Alice", balance=500)
        assert account.to_row() == ["A001", "Alice", "500"]

    def test_from_row(self):
        account = Account.from_row(["A002", "Bob Smith", "1234"])
        assert account == Account(id="A002", name="Bob Smith", balance=1234)

    def test_from_row_rejects_bad_balance(self):
        with pytest.raises(ValueError, match="Invalid amount: 12a"):
            Account.from_row(["A001", "Alice", "12a"])

    def test_from_row_rejects_negative_balance(self):
        with pytest.raises(ValueError, match="Invalid amount"):
            Account.from_row(["A001", "Alice", "-1"])

    def test_from_row_rejects_wrong_field_count(self):
        with pytest.raises(ValueError, match="Expected 3 fields"):
            Account.from_row(["A001", "Alice", "Smith", "100"])
        with pytest.raises(ValueError, match="Expected 3 fields"):
            Account.from_row(["A001"])


class TestTransaction:
    """Test Transaction row conversion and helpers"""

    def setup_method(self):
        self.tx = Transaction(
            timestamp="2024-01-15T09:30:00",
            tx_id="0000000007",
            type=TransactionType.TRANSFER,
            from_id="A001",
            to_id="A002",
            amount_cents=250,
            note="rent",
        )

    def test_to_row_order_matches_header(self):
        assert self.tx.to_row() == [
            "2024-01-15T09:30:00", "0000000007", "transfer", "A001", "A002", "250", "rent"
        ]

    def test_from_row_round_trips(self):
        assert Transaction.from_row(self.tx.to_row()) == self.tx

    def test_involves_either_party(self):
        assert self.tx.involves("A001")
        assert self.tx.involves("A002")
        assert not self.tx.involves("A003")

    def test_deposit_has_empty_from(self):
        deposit = Transaction.from_row(
            ["2024-01-15T09:30:00", "0000000001", "deposit", "", "A001", "500", "init"]
        )
        assert deposit.type == TransactionType.DEPOSIT
        assert deposit.from_id == ""

    def test_numeric_id(self):
        assert self.tx.numeric_id == 7
        other = Transaction("t", "TX-9", TransactionType.DEPOSIT, "", "A001", 1)
        assert other.numeric_id is None

    def test_is_immutable(self):
        with pytest.raises(AttributeError):
            self.tx.amount_cents = 1

    def test_surplus_fields_join_into_note(self):
        row = ["2024-01-15T09:30:00", "0000000002", "deposit", "", "A001", "100",
               "coffee", " milk", " sugar"]
        tx = Transaction.from_row(row)
        assert tx.note == "coffee, milk, sugar"

    def test_missing_note_is_empty(self):
        tx = Transaction.from_row(["ts", "0000000003", "withdraw", "A001", "", "5"])
        assert tx.note == ""

    def test_rejects_bad_amount(self):
        with pytest.raises(ValueError, match="Invalid amount"):
            Transaction.from_row(["ts", "1", "deposit", "", "A001", "", "note"])

    def test_rejects_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown transaction type: refund"):
            Transaction.from_row(["ts", "1", "refund", "", "A001", "10", "note"])

    def test_rejects_short_row(self):
        with pytest.raises(ValueError, match="Expected 7 fields"):
            Transaction.from_row(["ts", "1", "deposit"])
