import enum
import logging
from datetime import datetime

from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .exceptions import (
    InsufficientFundsError,
    InvalidRequestError,
    PersistenceError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


class OverdraftPolicy(str, enum.Enum):
    ALLOW = "allow"
    REJECT = "reject"
    CLAMP = "clamp"


class BalanceLedger:
    """Balance store backed by the ``users`` table.

    ``settle`` applies a signed delta with a single
    ``UPDATE ... RETURNING`` statement so two settlements for the same user
    can never interleave a read and a write. What happens when the delta
    would take the balance below zero is decided by ``policy``.
    """

    def __init__(
        self,
        db: Session,
        policy: OverdraftPolicy = OverdraftPolicy.ALLOW,
        starting_balance: int = models.DEFAULT_STARTING_BALANCE,
    ):
        self.db = db
        self.policy = OverdraftPolicy(policy)
        self.starting_balance = starting_balance

    def settle(
        self,
        user_id: int,
        delta: int,
        bet_amount: int | None = None,
        win_amount: int = 0,
        multiplier: int = 1,
        extra_bet: bool = False,
    ) -> int:
        """Apply ``delta`` and return the new balance.

        When ``bet_amount`` is given a ``bets`` row is written in the same
        transaction as the balance update. Its ``delta`` is the change
        actually applied, which under ``CLAMP`` can be smaller than the
        requested one.
        """
        new_value = models.User.balance + delta
        applied = delta
        if self.policy is OverdraftPolicy.CLAMP:
            # SET expressions see the pre-update balance
            applied = case((new_value < 0, -models.User.balance), else_=delta)
            new_value = case((new_value < 0, 0), else_=new_value)
        stmt = (
            update(models.User)
            .where(models.User.id == user_id)
            .values(balance=new_value, last_delta=applied, updated_at=datetime.utcnow())
            .returning(models.User.balance, models.User.last_delta)
            .execution_options(synchronize_session=False)
        )
        if self.policy is OverdraftPolicy.REJECT:
            stmt = stmt.where(models.User.balance + delta >= 0)

        try:
            row = self.db.execute(stmt).first()
            if row is None:
                self.db.rollback()
                user_exists = self.db.get(models.User, user_id) is not None
            else:
                new_balance, applied_delta = row
                if bet_amount is not None:
                    self.db.add(
                        models.Bet(
                            user_id=user_id,
                            amount=bet_amount,
                            win_amount=win_amount,
                            multiplier=multiplier,
                            requested_delta=delta,
                            delta=applied_delta,
                            balance_after=new_balance,
                            extra_bet=extra_bet,
                        )
                    )
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Settlement failed for user %s (delta %s)", user_id, delta, exc_info=True)
            raise PersistenceError(details={"user_id": user_id}) from e

        if row is None:
            if not user_exists:
                raise UserNotFoundError(details={"user_id": user_id})
            raise InsufficientFundsError(details={"user_id": user_id, "delta": delta})

        logger.debug(
            "Settled user %s: delta=%s applied=%s balance=%s",
            user_id,
            delta,
            applied_delta,
            new_balance,
        )
        return new_balance

    def get_balance(self, user_id: int) -> int:
        try:
            user = self.db.get(models.User, user_id)
        except SQLAlchemyError as e:
            raise PersistenceError(details={"user_id": user_id}) from e
        if user is None:
            raise UserNotFoundError(details={"user_id": user_id})
        return user.balance

    def ensure_user(self, user_id: int) -> int:
        """Return the user's balance, creating the user with the starting
        balance on first reference."""
        try:
            user = self.db.get(models.User, user_id)
            if user is not None:
                return user.balance
            user = models.User(
                id=user_id, username=f"User{user_id}", balance=self.starting_balance
            )
            self.db.add(user)
            try:
                self.db.commit()
            except IntegrityError:
                # created by a concurrent request
                self.db.rollback()
                user = self.db.get(models.User, user_id)
                if user is None:
                    raise
                return user.balance
            logger.info("Created user %s with balance %s", user_id, self.starting_balance)
            return user.balance
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(details={"user_id": user_id}) from e

    def create_user(self, username: str) -> models.User:
        if not username or not username.strip():
            raise InvalidRequestError("Username is required")
        user = models.User(username=username.strip(), balance=self.starting_balance)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise InvalidRequestError(
                "Username already exists", details={"username": username}
            ) from None
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(details={"username": username}) from e
        self.db.refresh(user)
        logger.info("Created user %s (%s)", user.id, user.username)
        return user
