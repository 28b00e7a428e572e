from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jokerslot.database import Base
from jokerslot.grid import Cell, Grid

CYCLE = ["7", "8", "9", "J", "Q", "K"]


class ScriptedRandom:
    """Random source replaying fixed values, then ``default`` forever."""

    def __init__(self, values, default=0.99):
        self.values = list(values)
        self.default = default
        self.calls = 0

    def random(self):
        self.calls += 1
        if self.values:
            return self.values.pop(0)
        return self.default


def no_win_symbols():
    # every row and column holds six different symbols
    return [[CYCLE[(r + c) % 6] for c in range(6)] for r in range(6)]


def make_grid(symbols, golden=()):
    golden = set(golden)
    return Grid(
        [
            [Cell(symbol_id, is_golden=(r, c) in golden) for c, symbol_id in enumerate(row)]
            for r, row in enumerate(symbols)
        ]
    )


def memory_session_factory():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
