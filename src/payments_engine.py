import csv
import logging
import sys
from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext
from typing import Dict, Iterable, Iterator, Optional

from errors import InputFormatError, InputSourceError
from models import Transaction, TransactionType, ClientAccount, ProcessingStats
from state_manager import StateManager
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)

AMOUNT_PRECISION = Decimal("0.0001")
MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1
REQUIRED_COLUMNS = ("type", "client", "tx")
MAX_AMOUNT = Decimal(10) ** 15


def truncate_amount(amount: Decimal) -> Decimal:
    """Cut an amount down to 4 fractional digits (rounding toward zero)."""
    with localcontext() as ctx:
        # Keep every integer digit plus the 4 fractional ones.
        ctx.prec = max(ctx.prec, amount.adjusted() + 5)
        return amount.quantize(AMOUNT_PRECISION, rounding=ROUND_DOWN)


class PaymentsEngine:
    """
    Replays a transaction log against a fresh set of client accounts.
    Transactions are applied one by one, strictly in input order.
    """

    def __init__(self, report_stats: bool = True):
        self._report_stats = report_stats
        self._state = StateManager()
        self._processor = TransactionProcessor(self._state)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")
        accounts = self.process_transactions(self.read_transactions(filepath))
        logger.info(f"Finished processing, {len(accounts)} client accounts")

        if self._report_stats:
            print(
                f"Processed: {self._stats.processed}, "
                f"Rejected: {self._stats.rejected}, "
                f"Skipped: {self._stats.skipped}",
                file=sys.stderr
            )

        return accounts

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """Apply transactions in order and return accounts in first-appearance order."""
        for transaction in transactions:
            result = self._processor.process_transaction(transaction)
            self._stats.record_result(result)
        return self._state.get_all_accounts()

    def read_transactions(self, filepath: str) -> Iterator[Transaction]:
        """Yield parsed transactions from a CSV file, skipping rows that can be ignored."""
        try:
            f = open(filepath, "r", newline="")
        except OSError as e:
            raise InputSourceError(filepath, e.strerror or str(e)) from e

        with f:
            reader = csv.DictReader(f)
            try:
                self._check_header(reader.fieldnames)
                for row in reader:
                    transaction = parse_csv_row(row, reader.line_num)
                    if transaction is None:
                        self._stats.record_skipped()
                        continue
                    yield transaction
            except csv.Error as e:
                raise InputFormatError(str(e), reader.line_num) from e
            except UnicodeDecodeError as e:
                raise InputFormatError(f"invalid text encoding: {e}", reader.line_num) from e

    def _check_header(self, fieldnames: Optional[list]) -> None:
        if fieldnames is None:
            logger.warning("Input file is empty")
            return
        columns = {name.strip().lower() for name in fieldnames if name is not None}
        missing = [column for column in REQUIRED_COLUMNS if column not in columns]
        if missing:
            raise InputFormatError(f"missing column(s): {', '.join(missing)}", 1)


def parse_csv_row(row: Dict[str, str], line_number: Optional[int] = None) -> Optional[Transaction]:
    """
    Parse CSV row into Transaction.

    Returns None for rows that are logged and skipped (unknown type, missing amount).
    Raises InputFormatError for malformed fields.
    """
    # Extra trailing fields land under the None key; they are ignored.
    normalized = {k.strip().lower(): (v or "").strip() for k, v in row.items() if k is not None}

    for column in REQUIRED_COLUMNS:
        if column not in normalized:
            raise InputFormatError(f"missing column {column!r}", line_number)

    client_id = _parse_id(normalized["client"], "client", MAX_CLIENT_ID, line_number)
    transaction_id = _parse_id(normalized["tx"], "tx", MAX_TRANSACTION_ID, line_number)

    amount = None
    amount_str = normalized.get("amount", "")
    if amount_str:
        amount = _parse_amount(amount_str, line_number)

    transaction_type_str = normalized["type"].lower()
    try:
        transaction_type = TransactionType(transaction_type_str)
    except ValueError:
        logger.warning(f"Unknown operation {transaction_type_str!r} for tx {transaction_id}, skipping")
        return None

    if transaction_type.is_disputable:
        if amount is None:
            logger.warning(f"{transaction_type.value.capitalize()} tx {transaction_id}: missing amount, skipping")
            return None
    else:
        amount = None

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_id(value: str, column: str, upper_bound: int, line_number: Optional[int]) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise InputFormatError(f"invalid {column} {value!r}", line_number) from None
    if not 0 <= parsed <= upper_bound:
        raise InputFormatError(f"{column} {parsed} out of range [0, {upper_bound}]", line_number)
    return parsed


def _parse_amount(value: str, line_number: Optional[int]) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise InputFormatError(f"invalid amount {value!r}", line_number) from None
    if not amount.is_finite():
        raise InputFormatError(f"invalid amount {value!r}", line_number)
    if abs(amount) > MAX_AMOUNT:
        raise InputFormatError(f"amount {value!r} exceeds {MAX_AMOUNT}", line_number)
    return truncate_amount(amount)
