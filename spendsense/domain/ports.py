"""Read-only storage contract consumed by the analysis core"""

from typing import Optional, Protocol

from spendsense.domain.models import Account, Consent, Liability, Transaction, TransactionFilter, User


class FinancialDataStore(Protocol):
    """Port exposing read access to users, accounts, transactions and liabilities.

    Implementations raise DataAccessError when the backing store fails.
    """

    def get_user(self, user_id: str) -> Optional[User]:
        """Return the user or None when it does not exist."""

    def list_accounts_for_user(self, user_id: str) -> list[Account]:
        """Return every account owned by the user."""

    def list_savings_accounts_for_user(self, user_id: str) -> list[Account]:
        """Return savings-like accounts (savings, money market, hsa, cash management)."""

    def list_credit_accounts_for_user(self, user_id: str) -> list[Account]:
        """Return credit-type accounts."""

    def list_transactions(
        self,
        *,
        user_id: Optional[str] = None,
        account_id: Optional[str] = None,
        filter: Optional[TransactionFilter] = None,
    ) -> list[Transaction]:
        """Return transactions for a user or an account, oldest first."""

    def get_liability(self, account_id: str) -> Optional[Liability]:
        """Return the liability attached to a credit account, if any."""

    def get_consent(self, user_id: str) -> Optional[Consent]:
        """Return the latest consent record for the user, if any."""


__all__ = ["FinancialDataStore"]
