from collections import deque
from decimal import Decimal
from typing import Deque, Dict, Iterator, List, Optional

from models import Transaction, ClientAccount


class ClientLedger:
    """
    Client accounts keyed by client id.
    Accounts are created on demand and never removed; iteration follows creation order.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def find(self, client_id: int) -> Optional[ClientAccount]:
        """Return the account for client_id, or None if it was never created."""
        return self._accounts.get(client_id)

    def create(self, client_id: int, initial_available: Decimal = Decimal("0")) -> ClientAccount:
        """Create a new unlocked account holding initial_available."""
        if client_id in self._accounts:
            raise ValueError(f"Client {client_id} already exists")
        account = ClientAccount(client_id=client_id, available=initial_available)
        self._accounts[client_id] = account
        return account

    def all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)


class TransactionJournal:
    """
    Ordered collection of deposit/withdrawal transactions addressed by transaction id.

    Transaction ids are not required to be unique: lookups and removals act on
    the earliest entry stored under an id, and removal keeps the relative order
    of everything else.
    """

    def __init__(self):
        self._entries: Dict[int, Transaction] = {}
        self._index: Dict[int, Deque[int]] = {}
        self._next_sequence = 0

    def add(self, transaction: Transaction) -> None:
        """Append transaction at the end of the journal."""
        sequence = self._next_sequence
        self._next_sequence += 1
        self._entries[sequence] = transaction
        self._index.setdefault(transaction.transaction_id, deque()).append(sequence)

    def find(self, transaction_id: int) -> Optional[Transaction]:
        """Return the first entry with transaction_id, or None."""
        sequences = self._index.get(transaction_id)
        if not sequences:
            return None
        return self._entries[sequences[0]]

    def remove(self, transaction_id: int) -> Optional[Transaction]:
        """Remove and return the first entry with transaction_id, or None if absent."""
        sequences = self._index.get(transaction_id)
        if not sequences:
            return None
        sequence = sequences.popleft()
        if not sequences:
            del self._index[transaction_id]
        return self._entries.pop(sequence)

    def transactions(self) -> List[Transaction]:
        return list(self._entries.values())

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self.transactions())

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._index

    def __len__(self) -> int:
        return len(self._entries)


class StateManager:
    """
    State of a single run: client accounts, transactions that can still be
    disputed and transactions under active dispute.
    A transaction id lives in at most one of the two journals at a time.
    """

    def __init__(self):
        self.accounts = ClientLedger()
        self.disputable = TransactionJournal()
        self.disputes = TransactionJournal()

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self.accounts.find(client_id)

    def create_account(self, client_id: int, initial_available: Decimal) -> ClientAccount:
        return self.accounts.create(client_id, initial_available)

    def store_transaction(self, transaction: Transaction) -> None:
        """Store a successful deposit/withdrawal for future dispute lookups."""
        self.disputable.add(transaction)

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve a transaction that can still be disputed."""
        return self.disputable.find(transaction_id)

    def retire_transaction(self, transaction_id: int) -> None:
        """Drop a transaction from the disputable journal once a dispute references it."""
        self.disputable.remove(transaction_id)

    def open_dispute(self, transaction: Transaction) -> None:
        self.disputes.add(transaction)

    def get_disputed_transaction(self, transaction_id: int) -> Optional[Transaction]:
        return self.disputes.find(transaction_id)

    def close_dispute(self, transaction_id: int) -> None:
        self.disputes.remove(transaction_id)

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return self.accounts.all_accounts()
