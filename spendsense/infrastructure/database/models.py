"""SQLAlchemy ORM models for users, accounts, transactions, liabilities and consent"""

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class User(Base):
    """Customer record"""

    __tablename__ = "users"

    user_id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    consent_status = Column(Text, nullable=False, default="revoked")  # granted | revoked
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    accounts = relationship("Account", back_populates="user", cascade="all, delete-orphan")
    consents = relationship("Consent", back_populates="user", cascade="all, delete-orphan")


class Account(Base):
    """Financial account linked by the user"""

    __tablename__ = "accounts"

    account_id = Column(Text, primary_key=True)
    user_id = Column(Text, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Text, nullable=False)
    subtype = Column(Text, nullable=True)
    available_balance = Column(Float, nullable=True)
    current_balance = Column(Float, nullable=True)
    credit_limit = Column(Float, nullable=True)
    iso_currency_code = Column(Text, nullable=False, default="USD")

    user = relationship("User", back_populates="accounts")
    transactions = relationship("Transaction", back_populates="account", cascade="all, delete-orphan")
    liability = relationship("Liability", back_populates="account", uselist=False, cascade="all, delete-orphan")


class Transaction(Base):
    """Account transaction; positive amounts are inflows"""

    __tablename__ = "transactions"

    transaction_id = Column(Text, primary_key=True)
    account_id = Column(Text, ForeignKey("accounts.account_id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    merchant_name = Column(Text, nullable=True)
    payment_channel = Column(Text, nullable=True)
    category_primary = Column(Text, nullable=True)
    category_detailed = Column(Text, nullable=True)
    pending = Column(Boolean, nullable=False, default=False)

    account = relationship("Account", back_populates="transactions")


class Liability(Base):
    """Latest statement data for a credit account"""

    __tablename__ = "liabilities"

    liability_id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(
        Text, ForeignKey("accounts.account_id", ondelete="CASCADE"), nullable=False, unique=True
    )
    apr_percentage = Column(Float, nullable=True)
    minimum_payment_amount = Column(Float, nullable=True)
    last_payment_amount = Column(Float, nullable=True)
    last_statement_balance = Column(Float, nullable=True)
    is_overdue = Column(Boolean, nullable=False, default=False)
    next_payment_due_date = Column(Date, nullable=True)

    account = relationship("Account", back_populates="liability")


class Consent(Base):
    """Opt-in/opt-out history; the most recent row is authoritative"""

    __tablename__ = "consent"

    consent_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Text, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    opted_in = Column(Boolean, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="consents")
