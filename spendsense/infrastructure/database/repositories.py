"""Data access layer - read queries mapped to domain dataclasses"""

from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from spendsense.domain import models as domain
from spendsense.domain.constants import SAVINGS_SUBTYPES
from spendsense.domain.exceptions import DataAccessError
from spendsense.infrastructure.database.models import Account, Consent, Liability, Transaction, User


@contextmanager
def _query_errors(query: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise DataAccessError(f"{query} failed: {e}") from e


def _to_user(row: User) -> domain.User:
    return domain.User(
        user_id=row.user_id,
        name=row.name,
        consent_status=row.consent_status,
        created_at=row.created_at,
    )


def _to_account(row: Account) -> domain.Account:
    return domain.Account(
        account_id=row.account_id,
        user_id=row.user_id,
        type=row.type,
        subtype=row.subtype,
        available_balance=row.available_balance,
        current_balance=row.current_balance,
        credit_limit=row.credit_limit,
        iso_currency_code=row.iso_currency_code,
    )


def _to_transaction(row: Transaction) -> domain.Transaction:
    return domain.Transaction(
        transaction_id=row.transaction_id,
        account_id=row.account_id,
        date=row.date,
        amount=row.amount,
        merchant_name=row.merchant_name,
        payment_channel=row.payment_channel,
        category_primary=row.category_primary,
        category_detailed=row.category_detailed,
        pending=row.pending,
    )


def _to_liability(row: Liability) -> domain.Liability:
    return domain.Liability(
        account_id=row.account_id,
        apr_percentage=row.apr_percentage,
        minimum_payment_amount=row.minimum_payment_amount,
        last_payment_amount=row.last_payment_amount,
        last_statement_balance=row.last_statement_balance,
        is_overdue=row.is_overdue,
        next_payment_due_date=row.next_payment_due_date,
    )


class SqlAlchemyFinancialDataStore:
    """FinancialDataStore backed by a request-scoped SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: str) -> Optional[domain.User]:
        with _query_errors("get_user"):
            row = self.db.query(User).filter(User.user_id == user_id).first()
        return _to_user(row) if row else None

    def list_accounts_for_user(self, user_id: str) -> List[domain.Account]:
        with _query_errors("list_accounts_for_user"):
            rows = self.db.query(Account).filter(Account.user_id == user_id).order_by(Account.account_id).all()
        return [_to_account(row) for row in rows]

    def list_savings_accounts_for_user(self, user_id: str) -> List[domain.Account]:
        with _query_errors("list_savings_accounts_for_user"):
            rows = (
                self.db.query(Account)
                .filter(Account.user_id == user_id)
                .filter(func.lower(Account.subtype).in_(SAVINGS_SUBTYPES))
                .order_by(Account.account_id)
                .all()
            )
        return [_to_account(row) for row in rows]

    def list_credit_accounts_for_user(self, user_id: str) -> List[domain.Account]:
        with _query_errors("list_credit_accounts_for_user"):
            rows = (
                self.db.query(Account)
                .filter(Account.user_id == user_id, Account.type == "credit")
                .order_by(Account.account_id)
                .all()
            )
        return [_to_account(row) for row in rows]

    def list_transactions(
        self,
        *,
        user_id: Optional[str] = None,
        account_id: Optional[str] = None,
        filter: Optional[domain.TransactionFilter] = None,
    ) -> List[domain.Transaction]:
        """Transactions of a user (all accounts) or of one account, oldest first; filter bounds are inclusive"""
        if user_id is None and account_id is None:
            raise ValueError("list_transactions requires user_id or account_id")
        filter = filter or domain.TransactionFilter()

        with _query_errors("list_transactions"):
            query = self.db.query(Transaction)
            if account_id is not None:
                query = query.filter(Transaction.account_id == account_id)
            if user_id is not None:
                query = query.join(Account).filter(Account.user_id == user_id)
            if filter.start_date is not None:
                query = query.filter(Transaction.date >= filter.start_date)
            if filter.end_date is not None:
                query = query.filter(Transaction.date <= filter.end_date)
            if not filter.include_pending:
                query = query.filter(Transaction.pending.is_(False))
            rows = query.order_by(Transaction.date, Transaction.transaction_id).all()

        return [_to_transaction(row) for row in rows]

    def get_liability(self, account_id: str) -> Optional[domain.Liability]:
        with _query_errors("get_liability"):
            row = self.db.query(Liability).filter(Liability.account_id == account_id).first()
        return _to_liability(row) if row else None

    def get_consent(self, user_id: str) -> Optional[domain.Consent]:
        """Most recent consent record"""
        with _query_errors("get_consent"):
            row = (
                self.db.query(Consent)
                .filter(Consent.user_id == user_id)
                .order_by(Consent.timestamp.desc(), Consent.consent_id.desc())
                .first()
            )
        if not row:
            return None
        return domain.Consent(
            user_id=row.user_id,
            opted_in=row.opted_in,
            timestamp=row.timestamp,
            consent_id=row.consent_id,
        )
