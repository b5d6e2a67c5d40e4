"""
Storage Backend Module

Provides the abstract storage interface and implementations for CSV files
(the default), SQLite and in-memory (testing). Every backend keeps the same
flat two-table shape: accounts and ledger rows, in insertion order.

Saving is always a full rewrite of both collections.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, Union
import codecs
import csv
import io
import os
import sqlite3

from .errors import InvalidRecordError, StorageUnavailableError
from .logging_config import get_logger, log_action
from .models import ACCOUNT_FIELDS, TRANSACTION_FIELDS, Account, Transaction


logger = get_logger("ledgerbook.storage")


@dataclass
class LoadResult:
    """Records parsed from one collection plus the rows that were skipped"""
    records: list = field(default_factory=list)
    rejected: List[InvalidRecordError] = field(default_factory=list)


def parse_rows(rows: Iterable[Sequence[str]], parser: Callable, source: str,
               first_line: int = 2) -> LoadResult:
    """
    Run each row through parser, keeping good records and collecting the
    rest as InvalidRecordError. Empty rows are ignored.
    """
    return parse_numbered_rows(enumerate(rows, start=first_line), parser, source)


def parse_numbered_rows(numbered_rows: Iterable[Tuple[int, Union[Sequence[str], bytes]]],
                        parser: Callable, source: str) -> LoadResult:
    """
    Same as parse_rows for (line_number, row) pairs. A row given as bytes
    could not be decoded and is rejected as it stands.
    """
    result = LoadResult()
    for line_number, row in numbered_rows:
        if not row:
            continue
        try:
            if isinstance(row, bytes):
                raise ValueError("Invalid UTF-8 text")
            result.records.append(parser(list(row)))
        except ValueError as e:
            if isinstance(row, bytes):
                value = row.decode("utf-8", "replace").rstrip("\r\n")
            else:
                value = ",".join(row)
            error = InvalidRecordError(source, line_number, str(e), value)
            result.rejected.append(error)
            log_action(
                logger, "warning", str(error),
                action="skip_record", resource=f"{source}:{line_number}",
            )
    return result


def split_legacy(line: str, field_count: int) -> List[str]:
    """Split an unquoted row; the last field keeps any further commas"""
    line = line.rstrip("\r\n")
    if not line:
        return []
    return line.split(",", field_count - 1)


def _parse_quoted(text: str) -> Optional[List[str]]:
    """Parse text as exactly one quoted CSV record, or None"""
    if text.count('"') % 2:
        return None
    try:
        rows = list(csv.reader(io.StringIO(text, newline=""), strict=True))
    except csv.Error:
        return None
    if len(rows) != 1:
        return None
    return rows[0]


def _parses(line: str, parser: Callable, field_count: int) -> bool:
    try:
        parser(split_legacy(line, field_count))
    except ValueError:
        return False
    return True


def iter_csv_records(data: bytes, parser: Callable,
                     field_count: int) -> Iterator[Tuple[int, Union[List[str], bytes]]]:
    """
    Split raw file content into (line_number, row) pairs, header excluded.

    Lines are decoded one at a time; a line that is not UTF-8 comes back as
    bytes. A quoted field may run over several lines. When the quotes never
    close, or a continuation line is itself a complete row, the quote was a
    stray character in an unquoted row and the line is split on commas.
    """
    if data.startswith(codecs.BOM_UTF8):
        data = data[len(codecs.BOM_UTF8):]
    lines: List[Union[str, bytes]] = []
    for raw in data.splitlines(keepends=True):
        try:
            lines.append(raw.decode("utf-8"))
        except UnicodeDecodeError:
            lines.append(raw)

    index = 1
    while index < len(lines):
        line = lines[index]
        if isinstance(line, bytes):
            yield index + 1, line
            index += 1
            continue

        end = index
        text = line
        while text.count('"') % 2 and end + 1 < len(lines) and isinstance(lines[end + 1], str):
            end += 1
            text += lines[end]

        row = _parse_quoted(text)
        continued = lines[index + 1:end + 1]
        if row is None or any(_parses(cont, parser, field_count) for cont in continued):
            yield index + 1, split_legacy(line, field_count)
            index += 1
        else:
            yield index + 1, row
            index = end + 1


def _discard(tmp_path: Path) -> None:
    if tmp_path.exists():
        tmp_path.unlink(missing_ok=True)


class StorageInterface(ABC):
    """Abstract interface for storage backends"""

    @abstractmethod
    def ensure_exists(self) -> None:
        """Create empty collections if they are missing"""
        pass

    @abstractmethod
    def load_accounts(self) -> LoadResult:
        """Load all accounts in storage order"""
        pass

    @abstractmethod
    def load_transactions(self) -> LoadResult:
        """Load all transactions in insertion order"""
        pass

    @abstractmethod
    def save(self, accounts: Sequence[Account], transactions: Sequence[Transaction]) -> None:
        """Replace both stored collections"""
        pass

    def close(self) -> None:
        """Release any held resources (default no-op)"""
        pass


class InMemoryStorage(StorageInterface):
    """In-memory storage implementation for testing"""

    def __init__(self):
        self.account_rows: List[List[str]] = []
        self.transaction_rows: List[List[str]] = []
        self.save_count = 0

    def ensure_exists(self) -> None:
        pass

    def load_accounts(self) -> LoadResult:
        return parse_rows(self.account_rows, Account.from_row, "memory:accounts")

    def load_transactions(self) -> LoadResult:
        return parse_rows(self.transaction_rows, Transaction.from_row, "memory:ledger")

    def save(self, accounts: Sequence[Account], transactions: Sequence[Transaction]) -> None:
        # Rows are copied so later in-memory mutation cannot leak into storage
        self.account_rows = [account.to_row() for account in accounts]
        self.transaction_rows = [tx.to_row() for tx in transactions]
        self.save_count += 1


class CsvFileStorage(StorageInterface):
    """
    Two comma-delimited files with a header row each.

    Fields are quoted when they contain the delimiter, quotes or newlines,
    so free text round-trips. Older unquoted rows still load. Both files are
    written to temporary siblings first and only then moved into place.
    """

    def __init__(self, accounts_path: Union[str, Path], ledger_path: Union[str, Path]):
        self.accounts_path = Path(accounts_path)
        self.ledger_path = Path(ledger_path)

    def ensure_exists(self) -> None:
        for path, header in ((self.accounts_path, ACCOUNT_FIELDS),
                             (self.ledger_path, TRANSACTION_FIELDS)):
            if path.exists():
                continue
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                os.replace(self._stage(path, header, []), path)
            except OSError as e:
                raise StorageUnavailableError(str(path), "writing", e) from e
            log_action(
                logger, "info", f"{path.name} created",
                action="create_file", resource=str(path),
            )

    def load_accounts(self) -> LoadResult:
        return self._load(self.accounts_path, Account.from_row, len(ACCOUNT_FIELDS))

    def load_transactions(self) -> LoadResult:
        return self._load(self.ledger_path, Transaction.from_row, len(TRANSACTION_FIELDS))

    def save(self, accounts: Sequence[Account], transactions: Sequence[Transaction]) -> None:
        """
        Stage both files before moving either into place, so a failed write
        leaves the previous pair untouched.
        """
        staged = []
        path = self.accounts_path
        try:
            for path, header, rows in (
                (self.accounts_path, ACCOUNT_FIELDS, [a.to_row() for a in accounts]),
                (self.ledger_path, TRANSACTION_FIELDS, [t.to_row() for t in transactions]),
            ):
                staged.append((self._stage(path, header, rows), path))
            for tmp_path, path in staged:
                os.replace(tmp_path, path)
        except OSError as e:
            raise StorageUnavailableError(str(path), "writing", e) from e
        finally:
            for tmp_path, _ in staged:
                _discard(tmp_path)

    def _load(self, path: Path, parser: Callable, field_count: int) -> LoadResult:
        try:
            data = path.read_bytes()
        except OSError as e:
            raise StorageUnavailableError(str(path), "reading", e) from e
        return parse_numbered_rows(iter_csv_records(data, parser, field_count), parser, path.name)

    @staticmethod
    def _stage(path: Path, header: Sequence[str], rows: List[List[str]]) -> Path:
        """Write header and rows to a temporary sibling of path and return it"""
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            with open(tmp_path, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f, lineterminator="\n")
                writer.writerow(header)
                writer.writerows(rows)
        except BaseException:
            _discard(tmp_path)
            raise
        return tmp_path


class SQLiteStorage(StorageInterface):
    """SQLite storage implementation; both tables are rewritten in one transaction"""

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._connection = None

    def _connect(self, operation: str) -> sqlite3.Connection:
        if self._connection is None:
            try:
                if self.db_path != ":memory:":
                    Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                self._connection = sqlite3.connect(self.db_path)
            except (OSError, sqlite3.Error) as e:
                raise StorageUnavailableError(self.db_path, operation, e) from e
        return self._connection

    def ensure_exists(self) -> None:
        connection = self._connect("writing")
        try:
            with connection:
                connection.execute("""
                    CREATE TABLE IF NOT EXISTS accounts (
                        position INTEGER PRIMARY KEY,
                        account_id TEXT NOT NULL,
                        name TEXT NOT NULL,
                        balance_cents TEXT NOT NULL
                    )
                """)
                connection.execute("""
                    CREATE TABLE IF NOT EXISTS ledger (
                        position INTEGER PRIMARY KEY,
                        ts_iso TEXT NOT NULL,
                        tx_id TEXT NOT NULL,
                        type TEXT NOT NULL,
                        from_id TEXT NOT NULL,
                        to_id TEXT NOT NULL,
                        amount_cents TEXT NOT NULL,
                        note TEXT NOT NULL
                    )
                """)
        except sqlite3.Error as e:
            raise StorageUnavailableError(self.db_path, "writing", e) from e

    def load_accounts(self) -> LoadResult:
        rows = self._select(
            "SELECT account_id, name, balance_cents FROM accounts ORDER BY position"
        )
        return parse_rows(rows, Account.from_row, "accounts", first_line=1)

    def load_transactions(self) -> LoadResult:
        rows = self._select(
            "SELECT ts_iso, tx_id, type, from_id, to_id, amount_cents, note "
            "FROM ledger ORDER BY position"
        )
        return parse_rows(rows, Transaction.from_row, "ledger", first_line=1)

    def save(self, accounts: Sequence[Account], transactions: Sequence[Transaction]) -> None:
        connection = self._connect("writing")
        try:
            with connection:
                connection.execute("DELETE FROM accounts")
                connection.execute("DELETE FROM ledger")
                connection.executemany(
                    "INSERT INTO accounts (account_id, name, balance_cents) VALUES (?, ?, ?)",
                    [account.to_row() for account in accounts],
                )
                connection.executemany(
                    "INSERT INTO ledger (ts_iso, tx_id, type, from_id, to_id, amount_cents, note) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    [tx.to_row() for tx in transactions],
                )
        except sqlite3.Error as e:
            raise StorageUnavailableError(self.db_path, "writing", e) from e

    def _select(self, query: str) -> List[List[str]]:
        connection = self._connect("reading")
        try:
            return [[str(value) for value in row] for row in connection.execute(query)]
        except sqlite3.Error as e:
            raise StorageUnavailableError(self.db_path, "reading", e) from e

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None


def create_storage(config) -> StorageInterface:
    """Build the backend named by config.storage_backend"""
    if config.storage_backend == "memory":
        return InMemoryStorage()
    if config.storage_backend == "sqlite":
        return SQLiteStorage(config.sqlite_path)
    return CsvFileStorage(config.accounts_path, config.ledger_path)
