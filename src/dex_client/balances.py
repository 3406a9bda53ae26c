"""
Spendable balance stores for metered requests.

`BalanceStore` is injected wherever balances are read or debited; nothing in
the package keeps balances at module level.

- `InMemoryBalanceStore` lives as long as its instance (tests, demos).
- `SqlBalanceStore` persists balances through SQLAlchemy.
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from decimal import Decimal
from typing import Dict, Generator, Optional

from sqlalchemy import Column, Numeric as SqlNumeric, String, create_engine, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .errors import DexClientError, InsufficientBalanceError
from .utils import Numeric, to_decimal

logger = logging.getLogger(__name__)

Base = declarative_base()


class BalanceStoreError(DexClientError):
    """Raised when the balance store cannot be read or written."""
    pass


class BalanceStore(ABC):
    """Per-wallet spendable balance."""

    @abstractmethod
    def get(self, address: str) -> Optional[Decimal]:
        """Current balance, or None for a wallet the store has never seen."""

    @abstractmethod
    def open(self, address: str, amount: Numeric) -> bool:
        """
        Atomically create a wallet with an opening balance.

        Returns False, leaving the balance untouched, if the wallet already exists.
        """

    @abstractmethod
    def credit(self, address: str, amount: Numeric) -> Decimal:
        """Add to a wallet's balance (creating it) and return the new balance."""

    @abstractmethod
    def debit(self, address: str, amount: Numeric) -> Decimal:
        """
        Atomically subtract from a wallet's balance and return the new balance.

        Raises:
            InsufficientBalanceError: If the balance is missing or too small
        """


def _positive(amount: Numeric) -> Decimal:
    value = to_decimal(amount)
    if value <= 0:
        raise ValueError(f"Amount must be positive, got {amount}")
    return value


class InMemoryBalanceStore(BalanceStore):
    """Thread-safe balance store kept in an instance dictionary."""

    def __init__(self, balances: Optional[Dict[str, Numeric]] = None):
        self._lock = threading.Lock()
        self._balances: Dict[str, Decimal] = {
            address: to_decimal(value) for address, value in (balances or {}).items()
        }

    def get(self, address: str) -> Optional[Decimal]:
        with self._lock:
            return self._balances.get(address)

    def open(self, address: str, amount: Numeric) -> bool:
        value = _positive(amount)
        with self._lock:
            if address in self._balances:
                return False
            self._balances[address] = value
            return True

    def credit(self, address: str, amount: Numeric) -> Decimal:
        value = _positive(amount)
        with self._lock:
            new_balance = self._balances.get(address, Decimal("0")) + value
            self._balances[address] = new_balance
            return new_balance

    def debit(self, address: str, amount: Numeric) -> Decimal:
        value = _positive(amount)
        with self._lock:
            balance = self._balances.get(address)
            if balance is None or balance < value:
                raise InsufficientBalanceError(
                    f"Insufficient balance for {address}: need {value}",
                    balance=balance,
                    required=value,
                )
            new_balance = balance - value
            self._balances[address] = new_balance
            return new_balance


class WalletBalance(Base):
    """Persisted spendable balance of a wallet."""
    __tablename__ = "wallet_balances"

    address = Column(String(128), primary_key=True)
    balance = Column(SqlNumeric(28, 8, asdecimal=True), nullable=False)


class SqlBalanceStore(BalanceStore):
    """
    SQLAlchemy-backed balance store.

    Debits are a single conditional UPDATE, so concurrent debits against the
    same wallet can never drive its balance negative.
    """

    def __init__(self, database_url: str, echo: bool = False, create_tables: bool = True):
        self._engine = create_engine(database_url, echo=echo, future=True)
        self._session_factory = sessionmaker(
            bind=self._engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
        if create_tables:
            Base.metadata.create_all(self._engine)
        logger.info(f"Balance store ready at {database_url.split('@')[-1]}")

    @contextmanager
    def _transaction(self) -> Generator[Session, None, None]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Balance store transaction failed, rolling back: {e}")
            session.rollback()
            raise BalanceStoreError(f"Balance store transaction failed: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, address: str) -> Optional[Decimal]:
        with self._transaction() as session:
            balance = session.execute(
                select(WalletBalance.balance).where(WalletBalance.address == address)
            ).scalar_one_or_none()
        return Decimal(balance) if balance is not None else None

    def open(self, address: str, amount: Numeric) -> bool:
        value = _positive(amount)
        with self._transaction() as session:
            session.add(WalletBalance(address=address, balance=value))
            try:
                session.flush()
            except IntegrityError:
                session.rollback()
                return False
        logger.debug(f"Opened balance for {address}: {value}")
        return True

    def credit(self, address: str, amount: Numeric) -> Decimal:
        value = _positive(amount)
        try:
            return self._credit(address, value)
        except BalanceStoreError as e:
            # Another writer created the row first; retry as an update
            if not isinstance(e.__cause__, IntegrityError):
                raise
            return self._credit(address, value)

    def _credit(self, address: str, value: Decimal) -> Decimal:
        with self._transaction() as session:
            result = session.execute(
                update(WalletBalance)
                .where(WalletBalance.address == address)
                .values(balance=WalletBalance.balance + value)
            )
            if result.rowcount == 0:
                session.add(WalletBalance(address=address, balance=value))
                session.flush()
            balance = session.execute(
                select(WalletBalance.balance).where(WalletBalance.address == address)
            ).scalar_one()
        return Decimal(balance)

    def debit(self, address: str, amount: Numeric) -> Decimal:
        value = _positive(amount)
        with self._transaction() as session:
            result = session.execute(
                update(WalletBalance)
                .where(WalletBalance.address == address, WalletBalance.balance >= value)
                .values(balance=WalletBalance.balance - value)
            )
            balance = session.execute(
                select(WalletBalance.balance).where(WalletBalance.address == address)
            ).scalar_one_or_none()
            if result.rowcount == 0:
                raise InsufficientBalanceError(
                    f"Insufficient balance for {address}: need {value}",
                    balance=Decimal(balance) if balance is not None else None,
                    required=value,
                )
        return Decimal(balance)

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self._engine.dispose()
