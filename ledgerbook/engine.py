"""
Ledger Engine Module

Owns the account and transaction collections and is the only code that
changes balances. Every balance change follows the same order: mutate the
account in memory, append exactly one transaction, then rewrite storage.

Account lookups are first-match in creation order.
"""

from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Tuple

from .clock import Clock, SystemClock, TransactionIdGenerator
from .errors import (
    AccountNotFoundError, DuplicateAccountError, InsufficientFundsError,
    InvalidInputError, InvalidRecordError, StorageUnavailableError,
)
from .logging_config import get_logger, log_action
from .models import Account, Transaction, TransactionType
from .storage import LoadResult, StorageInterface


@dataclass
class OpenReport:
    """What happened while loading persisted state"""
    accounts_loaded: int = 0
    transactions_loaded: int = 0
    rejected: List[InvalidRecordError] = field(default_factory=list)
    failures: List[StorageUnavailableError] = field(default_factory=list)


class LedgerEngine:
    """
    In-process bookkeeping engine.

    Raises AccountNotFoundError, InsufficientFundsError, DuplicateAccountError
    and InvalidInputError before touching any state. StorageUnavailableError
    from a save is raised after the in-memory change has been made.
    """

    def __init__(
        self,
        storage: StorageInterface,
        clock: Optional[Clock] = None,
        id_generator: Optional[TransactionIdGenerator] = None,
        allow_duplicate_account_ids: bool = False
    ):
        self.storage = storage
        self.clock = clock or SystemClock()
        self.id_generator = id_generator or TransactionIdGenerator()
        self.allow_duplicate_account_ids = allow_duplicate_account_ids
        self.logger = get_logger("ledgerbook.engine")

        self._accounts: List[Account] = []
        self._transactions: List[Transaction] = []

    @classmethod
    def from_config(cls, config, storage: StorageInterface,
                    clock: Optional[Clock] = None) -> "LedgerEngine":
        return cls(
            storage,
            clock=clock,
            id_generator=TransactionIdGenerator(width=config.tx_id_width),
            allow_duplicate_account_ids=config.allow_duplicate_account_ids,
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def open(self) -> OpenReport:
        """
        Create missing storage, load both collections and seed the id counter
        from the highest loaded tx_id.

        A collection that cannot be read stays empty; the other one still loads.
        """
        report = OpenReport()
        try:
            self.storage.ensure_exists()
        except StorageUnavailableError as e:
            self._storage_failed(e, "ensure_exists")
            report.failures.append(e)

        self._accounts = self._load(self.storage.load_accounts, report)
        self._transactions = self._load(self.storage.load_transactions, report)
        report.accounts_loaded = len(self._accounts)
        report.transactions_loaded = len(self._transactions)

        counter = self.id_generator.seed(tx.numeric_id for tx in self._transactions)
        log_action(
            self.logger, "info", "Ledger opened",
            action="open",
            extra={
                "accounts": report.accounts_loaded,
                "transactions": report.transactions_loaded,
                "rejected": len(report.rejected),
                "tx_counter": counter,
            }
        )
        return report

    def _load(self, loader: Callable[[], LoadResult], report: OpenReport) -> list:
        try:
            result = loader()
        except StorageUnavailableError as e:
            self._storage_failed(e, "load")
            report.failures.append(e)
            return []
        report.rejected.extend(result.rejected)
        return result.records

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_account(self, account_id: str, name: str, initial_balance: int = 0) -> Account:
        """
        Append a new account. No transaction is recorded for the opening balance.

        Raises:
            InvalidInputError: empty id or a negative/non-integer balance
            DuplicateAccountError: id already in use (unless duplicates are allowed)
        """
        if not account_id:
            raise InvalidInputError("Account id is required")
        self._check_amount(initial_balance, "Initial balance")
        if not self.allow_duplicate_account_ids and self.find_account(account_id) is not None:
            self._rejected("create_account", account_id, "duplicate id")
            raise DuplicateAccountError(account_id)

        account = Account(id=account_id, name=name, balance=initial_balance)
        self._accounts.append(account)
        log_action(
            self.logger, "info", "Account created",
            action="create_account", resource=f"account:{account_id}",
            extra={"name": name, "balance_cents": initial_balance}
        )
        self._persist()
        return replace(account)

    def deposit(self, account_id: str, amount: int, note: str = "") -> Transaction:
        """Credit an account from outside the ledger"""
        self._check_amount(amount)
        account = self._require(account_id)

        account.balance += amount
        return self._commit(TransactionType.DEPOSIT, "", account_id, amount, note)

    def withdraw(self, account_id: str, amount: int, note: str = "") -> Transaction:
        """Debit an account to outside the ledger"""
        self._check_amount(amount)
        account = self._require(account_id)
        self._require_funds(account, amount, "withdraw")

        account.balance -= amount
        return self._commit(TransactionType.WITHDRAW, account_id, "", amount, note)

    def transfer(self, from_id: str, to_id: str, amount: int, note: str = "") -> Transaction:
        """
        Move funds between two accounts.

        The destination is looked up only after the source has been found
        and has enough funds. A transfer to the same account is a net no-op
        but still recorded.
        """
        self._check_amount(amount)
        source = self._require(from_id, role="from")
        self._require_funds(source, amount, "transfer")
        target = self._require(to_id, role="to")

        source.balance -= amount
        target.balance += amount
        return self._commit(TransactionType.TRANSFER, from_id, to_id, amount, note)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_account(self, account_id: str) -> Optional[Account]:
        """First account with a matching id, or None"""
        for account in self._accounts:
            if account.id == account_id:
                return account
        return None

    def get_balance(self, account_id: str) -> int:
        return self._require(account_id).balance

    def get_statement(self, account_id: str, limit: int) -> List[Transaction]:
        """
        Up to limit transactions touching the account, newest first.

        Raises:
            AccountNotFoundError: unknown account (nothing is scanned)
        """
        self._require(account_id)
        selected: List[Transaction] = []
        if limit <= 0:
            return selected
        for tx in reversed(self._transactions):
            if tx.involves(account_id):
                selected.append(tx)
                if len(selected) == limit:
                    break
        return selected

    def list_accounts(self) -> List[Account]:
        """Snapshot of every account in creation order"""
        return [replace(account) for account in self._accounts]

    @property
    def accounts(self) -> Tuple[Account, ...]:
        return tuple(self.list_accounts())

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return tuple(self._transactions)

    @property
    def transaction_count(self) -> int:
        return len(self._transactions)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, account_id: str, role: Optional[str] = None) -> Account:
        account = self.find_account(account_id)
        if account is None:
            self._rejected("lookup", account_id, f"{role or 'account'} not found")
            raise AccountNotFoundError(account_id, role)
        return account

    def _require_funds(self, account: Account, amount: int, action: str) -> None:
        if account.balance < amount:
            self._rejected(action, account.id, "insufficient funds",
                           balance_cents=account.balance, amount_cents=amount)
            raise InsufficientFundsError(account.id, account.balance, amount)

    @staticmethod
    def _check_amount(amount: int, label: str = "Amount") -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidInputError(f"{label} must be a whole number of cents")
        if amount < 0:
            raise InvalidInputError(f"{label} cannot be negative")

    def _commit(self, tx_type: TransactionType, from_id: str, to_id: str,
                amount: int, note: str) -> Transaction:
        tx = Transaction(
            timestamp=self.clock.now_iso(),
            tx_id=self.id_generator.next_id(),
            type=tx_type,
            from_id=from_id,
            to_id=to_id,
            amount_cents=amount,
            note=note,
        )
        self._transactions.append(tx)
        log_action(
            self.logger, "info", f"Transaction recorded: {tx_type.value}",
            action=tx_type.value, resource=f"transaction:{tx.tx_id}",
            extra={
                "from_account": from_id or None,
                "to_account": to_id or None,
                "amount_cents": amount,
            }
        )
        self._persist()
        return tx

    def _persist(self) -> None:
        try:
            self.storage.save(self._accounts, self._transactions)
        except StorageUnavailableError as e:
            self._storage_failed(e, "save")
            raise

    def _rejected(self, action: str, account_id: str, reason: str, **extra) -> None:
        log_action(
            self.logger, "warning", f"Rejected {action}: {reason}",
            action=action, resource=f"account:{account_id}",
            extra=extra or None
        )

    def _storage_failed(self, error: StorageUnavailableError, action: str) -> None:
        log_action(
            self.logger, "error", str(error),
            action=action, resource=error.path,
            extra={"operation": error.operation}
        )
