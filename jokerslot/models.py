from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from .database import Base

DEFAULT_STARTING_BALANCE = 10000


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False)
    balance = Column(Integer, default=DEFAULT_STARTING_BALANCE, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_delta = Column(Integer, default=0, nullable=False)  # applied by the latest settle
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Bet(Base):
    __tablename__ = "bets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    amount = Column(Integer, nullable=False)
    win_amount = Column(Integer, nullable=False)
    multiplier = Column(Integer, nullable=False)
    requested_delta = Column(Integer, nullable=False)  # win_amount - amount
    delta = Column(Integer, nullable=False)  # applied to the balance
    balance_after = Column(Integer, nullable=False)
    extra_bet = Column(Boolean, default=False, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
