"""
Error Taxonomy

Every failure the engine or a storage adapter can report. The command loop
catches LedgerError, prints the message and keeps going.
"""

from typing import Optional


class LedgerError(Exception):
    """Base class for all ledger failures"""


class AccountNotFoundError(LedgerError):
    """No account with the requested id"""

    def __init__(self, account_id: str, role: Optional[str] = None):
        self.account_id = account_id
        self.role = role
        if role:
            message = f"{role.capitalize()} account not found!"
        else:
            message = "Account not found!"
        super().__init__(message)


class InsufficientFundsError(LedgerError):
    """Balance is lower than the requested amount"""

    def __init__(self, account_id: str, balance: int, amount: int):
        self.account_id = account_id
        self.balance = balance
        self.amount = amount
        super().__init__("Not enough balance")


class DuplicateAccountError(LedgerError):
    """An account with this id already exists"""

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account {account_id} already exists!")


class InvalidInputError(LedgerError):
    """Caller supplied a value the engine refuses (empty id, negative amount)"""


class InvalidRecordError(LedgerError):
    """A persisted row could not be parsed and was skipped"""

    def __init__(self, source: str, line_number: int, reason: str, value: str = ""):
        self.source = source
        self.line_number = line_number
        self.reason = reason
        self.value = value
        super().__init__(f"{reason} in {source} line {line_number}: {value!r}")


class StorageUnavailableError(LedgerError):
    """Backing storage could not be opened for reading or writing"""

    def __init__(self, path: str, operation: str, cause: Optional[BaseException] = None):
        self.path = path
        self.operation = operation
        self.cause = cause
        detail = f" ({cause})" if cause else ""
        super().__init__(f"Failed to open {path} for {operation}!{detail}")
