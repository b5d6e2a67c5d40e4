"""
Interactive command shell for the ledger.

Usage:
    ledgerbook                          # data files under ./data
    ledgerbook --data-dir ~/books       # another data directory
    ledgerbook --storage sqlite         # SQLite instead of CSV files

Each command asks for its fields on the following lines.
"""

import argparse
import cmd
import sys
from typing import List, Optional

from .config import STORAGE_BACKENDS, LedgerConfig, get_config
from .engine import LedgerEngine
from .errors import InvalidInputError, LedgerError
from .logging_config import get_logger, log_action, setup_logging
from .storage import create_storage


COMMANDS = ("list", "create", "deposit", "withdraw", "transfer", "balance", "statement", "quit")

logger = get_logger("ledgerbook.cli")


def parse_cents(text: str) -> int:
    """Parse a signed whole number of cents"""
    try:
        return int(text.strip())
    except ValueError:
        raise InvalidInputError(f"Invalid amount: {text.strip()}")


def format_transaction(tx) -> str:
    return ", ".join(tx.to_row())


class LedgerShell(cmd.Cmd):
    """Line-oriented dispatcher mapping commands onto a LedgerEngine"""

    prompt = f"Enter command ({', '.join(COMMANDS)}): "

    def __init__(self, engine: LedgerEngine, statement_default_limit: int = 10,
                 stdin=None, stdout=None):
        super().__init__(stdin=stdin, stdout=stdout)
        self.engine = engine
        self.statement_default_limit = statement_default_limit
        # Scripted input (tests, pipes) is read from self.stdin
        if stdin is not None:
            self.use_rawinput = False

    def say(self, text: str = "") -> None:
        self.stdout.write(text + "\n")

    def ask(self, label: str, strip: bool = True) -> str:
        """Prompt for one field; EOFError when input runs out"""
        if self.use_rawinput:
            line = input(label)
        else:
            self.stdout.write(label)
            self.stdout.flush()
            line = self.stdin.readline()
            if not line:
                raise EOFError
            line = line.rstrip("\r\n")
        return line.strip() if strip else line

    def cmdloop(self, intro=None):
        """
        Read and dispatch commands until one returns True. End of input
        quits; a typed EOF or help is just another unknown command.
        """
        self.preloop()
        if intro:
            self.say(str(intro))
        stop = None
        while not stop:
            try:
                line = self.ask(self.prompt, strip=False)
            except EOFError:
                self.say()
                stop = self.do_quit("")
                break
            line = self.precmd(line)
            stop = self.onecmd(line)
            stop = self.postcmd(stop, line)
        self.postloop()

    def onecmd(self, line):
        try:
            return super().onecmd(line)
        except EOFError:
            self.say()
            return self.do_quit("")
        except LedgerError as e:
            self.say(str(e))
            return False

    def emptyline(self):
        pass

    def default(self, line):
        self.say("Unknown command...")

    # ─── Commands ────────────────────────────────────────────────

    def do_list(self, arg):
        """list: show every account"""
        accounts = self.engine.list_accounts()
        if not accounts:
            self.say("No accounts.")
        for acc in accounts:
            self.say(f"{acc.id} | {acc.name} | {acc.balance} cents")

    def do_create(self, arg):
        """create: open a new account"""
        account_id = self.ask("Enter account id: ")
        name = self.ask("Enter name: ")
        balance = parse_cents(self.ask("Enter initial balance (cents): "))
        self.engine.create_account(account_id, name, balance)
        self.say("Account created successfully!")

    def do_deposit(self, arg):
        """deposit: add funds to an account"""
        account_id = self.ask("Account id: ")
        amount = parse_cents(self.ask("Enter amount (cents): "))
        note = self.ask("Enter note: ", strip=False)
        self.engine.deposit(account_id, amount, note)
        self.say("Deposit successful!")

    def do_withdraw(self, arg):
        """withdraw: take funds out of an account"""
        account_id = self.ask("Account id: ")
        amount = parse_cents(self.ask("Enter amount (cents): "))
        note = self.ask("Enter note: ", strip=False)
        self.engine.withdraw(account_id, amount, note)
        self.say("Withdraw successful!")

    def do_transfer(self, arg):
        """transfer: move funds between two accounts"""
        from_id = self.ask("Enter From account id: ")
        to_id = self.ask("Enter To account id: ")
        amount = parse_cents(self.ask("Enter amount (cents): "))
        note = self.ask("Enter note: ", strip=False)
        self.engine.transfer(from_id, to_id, amount, note)
        self.say("Transfer successful!")

    def do_balance(self, arg):
        """balance: show one account's balance"""
        account_id = self.ask("Enter account id: ")
        balance = self.engine.get_balance(account_id)
        self.say(f"Current balance: {balance} cents.")

    def do_statement(self, arg):
        """statement: newest transactions for one account"""
        account_id = self.ask("Enter account id: ")
        raw_limit = self.ask("Enter limit: ")
        limit = parse_cents(raw_limit) if raw_limit else self.statement_default_limit
        entries = self.engine.get_statement(account_id, limit)
        if not entries:
            self.say("No transactions found for this account.")
        for tx in entries:
            self.say(format_transaction(tx))

    def do_quit(self, arg):
        """quit: leave the ledger"""
        self.say("Exiting system...")
        return True

    def do_help(self, arg):
        self.default(f"help {arg}".strip())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ledgerbook", description="Single-user cent ledger")
    parser.add_argument("--data-dir", help="directory holding the ledger files")
    parser.add_argument("--storage", choices=STORAGE_BACKENDS, help="storage backend")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    return parser


def load_config(args: argparse.Namespace) -> LedgerConfig:
    overrides = {}
    if args.data_dir:
        overrides["data_dir"] = args.data_dir
    if args.storage:
        overrides["storage_backend"] = args.storage
    if args.log_level:
        overrides["log_level"] = args.log_level
    if not overrides:
        return get_config()
    return LedgerConfig(**overrides)


def main(argv: Optional[List[str]] = None, stdin=None, stdout=None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args)
    setup_logging(config.log_level, config.log_format, config.log_file)

    storage = create_storage(config)
    engine = LedgerEngine.from_config(config, storage)
    out = stdout or sys.stdout
    try:
        report = engine.open()
        log_action(
            logger, "info", "Session started",
            action="start", resource=config.storage_backend,
            extra={"data_dir": str(config.data_dir)}
        )
        for failure in report.failures:
            out.write(f"{failure}\n")
        for rejected in report.rejected:
            out.write(f"Skipped invalid record: {rejected}\n")
        LedgerShell(engine, config.statement_default_limit, stdin=stdin, stdout=stdout).cmdloop()
    except KeyboardInterrupt:
        out.write("\nExiting system...\n")
    finally:
        storage.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
