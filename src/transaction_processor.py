import logging
from decimal import Decimal

from models import Transaction, TransactionType, ClientAccount, ProcessingResult
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to state, one at a time, in the order they are given.

    Every handler validates before it mutates: a rejected transaction logs a
    warning and leaves accounts and journals exactly as they were.
    """

    def __init__(self, state: StateManager):
        self._state = state

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: Applied
            UNKNOWN_CLIENT: No account exists for the client
            ACCOUNT_LOCKED: Account was frozen by a chargeback
            INSUFFICIENT_FUNDS: Not enough available funds
            UNKNOWN_TRANSACTION: Referenced tx is not disputable / not under dispute
            CLIENT_MISMATCH: Referenced tx belongs to another client
        """
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(transaction)
            case _:
                raise ValueError(f"Unsupported transaction type: {transaction.transaction_type}")

    def _handle_deposit(self, transaction: Transaction) -> ProcessingResult:
        amount = _require_amount(transaction)
        account = self._state.get_account(transaction.client_id)

        if account is None:
            self._state.create_account(transaction.client_id, amount)
        elif account.locked:
            logger.warning(f"Deposit tx {transaction.transaction_id}: account {account.client_id} is locked")
            return ProcessingResult.ACCOUNT_LOCKED
        else:
            account.credit(amount)

        self._state.store_transaction(transaction)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, transaction: Transaction) -> ProcessingResult:
        amount = _require_amount(transaction)
        account = self._state.get_account(transaction.client_id)

        if account is None:
            logger.warning(f"Withdrawal tx {transaction.transaction_id}: unknown client {transaction.client_id}")
            return ProcessingResult.UNKNOWN_CLIENT

        if account.locked:
            logger.warning(f"Withdrawal tx {transaction.transaction_id}: account {account.client_id} is locked")
            return ProcessingResult.ACCOUNT_LOCKED

        if account.available < amount:
            logger.warning(f"Withdrawal tx {transaction.transaction_id}: insufficient funds ({account.available} < {amount})")
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.debit(amount)
        self._state.store_transaction(transaction)
        return ProcessingResult.SUCCESS

    def _handle_dispute(self, transaction: Transaction) -> ProcessingResult:
        account = self._state.get_account(transaction.client_id)
        if account is None:
            logger.warning(f"Dispute for tx {transaction.transaction_id}: unknown client {transaction.client_id}")
            return ProcessingResult.UNKNOWN_CLIENT

        original = self._state.get_transaction(transaction.transaction_id)
        if original is None:
            logger.warning(f"Dispute for tx {transaction.transaction_id}: transaction unknown or no longer disputable")
            return ProcessingResult.UNKNOWN_TRANSACTION

        result = self._apply_dispute(account, original)
        if result == ProcessingResult.SUCCESS:
            self._state.open_dispute(original)

        # A transaction can be challenged only once, whatever the outcome.
        self._state.retire_transaction(original.transaction_id)
        return result

    def _handle_resolve(self, transaction: Transaction) -> ProcessingResult:
        account = self._state.get_account(transaction.client_id)
        if account is None:
            logger.warning(f"Resolve for tx {transaction.transaction_id}: unknown client {transaction.client_id}")
            return ProcessingResult.UNKNOWN_CLIENT

        disputed = self._state.get_disputed_transaction(transaction.transaction_id)
        if disputed is None:
            logger.warning(f"Resolve for tx {transaction.transaction_id}: transaction is not under dispute")
            return ProcessingResult.UNKNOWN_TRANSACTION

        result = self._check_settlement("Resolve", account, disputed)
        if result != ProcessingResult.SUCCESS:
            return result

        if disputed.transaction_type == TransactionType.DEPOSIT:
            account.release_hold(disputed.amount)
        else:
            # The withdrawal stands; drop the provisional credit.
            account.remove_held(disputed.amount)

        self._state.close_dispute(disputed.transaction_id)
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, transaction: Transaction) -> ProcessingResult:
        account = self._state.get_account(transaction.client_id)
        if account is None:
            logger.warning(f"Chargeback for tx {transaction.transaction_id}: unknown client {transaction.client_id}")
            return ProcessingResult.UNKNOWN_CLIENT

        disputed = self._state.get_disputed_transaction(transaction.transaction_id)
        if disputed is None:
            logger.warning(f"Chargeback for tx {transaction.transaction_id}: transaction is not under dispute")
            return ProcessingResult.UNKNOWN_TRANSACTION

        result = self._check_settlement("Chargeback", account, disputed)
        if result != ProcessingResult.SUCCESS:
            return result

        if disputed.transaction_type == TransactionType.DEPOSIT:
            account.remove_held(disputed.amount)
        else:
            # Withdrawn funds come back to the client.
            account.release_hold(disputed.amount)

        account.lock()
        self._state.close_dispute(disputed.transaction_id)
        return ProcessingResult.SUCCESS

    def _apply_dispute(self, account: ClientAccount, original: Transaction) -> ProcessingResult:
        result = self._check_settlement("Dispute", account, original)
        if result != ProcessingResult.SUCCESS:
            return result

        if original.transaction_type == TransactionType.DEPOSIT:
            if account.available < original.amount:
                logger.warning(f"Dispute for tx {original.transaction_id}: client lacks funds ({account.available} < {original.amount})")
                return ProcessingResult.INSUFFICIENT_FUNDS
            account.hold(original.amount)
        else:
            # Provisionally re-credit the withdrawn amount as held funds.
            account.add_held(original.amount)

        return ProcessingResult.SUCCESS

    def _check_settlement(self, action: str, account: ClientAccount, original: Transaction) -> ProcessingResult:
        """Checks shared by dispute, resolve and chargeback against the referenced transaction."""
        if original.client_id != account.client_id:
            logger.warning(f"{action} for tx {original.transaction_id}: client mismatch (expected {account.client_id}, got {original.client_id})")
            return ProcessingResult.CLIENT_MISMATCH

        # Locked accounts also reject resolve and chargeback, so their open disputes stay open.
        if account.locked:
            logger.warning(f"{action} for tx {original.transaction_id}: account {account.client_id} is locked")
            return ProcessingResult.ACCOUNT_LOCKED

        return ProcessingResult.SUCCESS


def _require_amount(transaction: Transaction) -> Decimal:
    if transaction.amount is None:
        raise ValueError(f"{transaction.transaction_type.value.capitalize()} tx {transaction.transaction_id} has no amount")
    return transaction.amount
