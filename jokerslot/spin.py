import logging
from dataclasses import dataclass
from typing import Tuple

from .evaluator import Evaluation, WinLine, calculate_multiplier, evaluate, transform_golden
from .exceptions import InvalidRequestError
from .grid import Grid, generate_grid
from .ledger import BalanceLedger
from .rng import RandomSource
from .symbols import SymbolTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BetRequest:
    user_id: int
    bet_amount: int
    extra_bet: bool = False


@dataclass(frozen=True)
class SpinOutcome:
    initial_grid: Grid
    initial: Evaluation
    grid: Grid
    final: Evaluation
    multiplier: int

    @property
    def win_amount(self) -> int:
        return self.final.win_amount

    @property
    def winning_lines(self) -> Tuple[WinLine, ...]:
        return self.final.winning_lines

    @property
    def total_win(self) -> int:
        return self.final.win_amount * self.multiplier


@dataclass(frozen=True)
class BetResult:
    grid: Grid
    win_amount: int
    multiplier: int
    winning_lines: Tuple[WinLine, ...]
    new_balance: int
    total_win: int
    initial_grid: Grid
    initial_lines: Tuple[WinLine, ...]

    def to_dict(self) -> dict:
        return {
            "grid": self.grid.to_list(),
            "newBalance": self.new_balance,
            "winAmount": self.total_win,
            "lineWin": self.win_amount,
            "multiplier": self.multiplier,
            "winningLines": [line.to_dict() for line in self.winning_lines],
        }


def play_grid(grid: Grid, table: SymbolTable, extra_bet: bool = False) -> SpinOutcome:
    """Evaluate, convert golden cells on winning lines, re-evaluate and price
    an already generated grid."""
    initial = evaluate(grid, table)
    transformed = transform_golden(grid, initial.winning_lines)
    final = evaluate(transformed, table)
    multiplier = calculate_multiplier(len(final.winning_lines), extra_bet)
    return SpinOutcome(
        initial_grid=grid,
        initial=initial,
        grid=transformed,
        final=final,
        multiplier=multiplier,
    )


def spin(table: SymbolTable, rng: RandomSource, extra_bet: bool = False) -> SpinOutcome:
    return play_grid(generate_grid(table, rng), table, extra_bet)


def validate_bet(request: BetRequest) -> None:
    amount = request.bet_amount
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidRequestError(
            "Invalid bet amount. Must be a positive integer.",
            details={"bet_amount": amount},
        )


def resolve_spin(
    request: BetRequest,
    table: SymbolTable,
    rng: RandomSource,
    ledger: BalanceLedger,
) -> BetResult:
    """Run one spin for ``request`` and settle it.

    Nothing is returned unless the ledger accepted the delta; a ledger error
    propagates and the computed grid is dropped with it.
    """
    validate_bet(request)
    outcome = spin(table, rng, request.extra_bet)
    logger.debug("Grid for user %s: %r", request.user_id, outcome.grid)

    delta = outcome.total_win - request.bet_amount
    new_balance = ledger.settle(
        request.user_id,
        delta,
        bet_amount=request.bet_amount,
        win_amount=outcome.total_win,
        multiplier=outcome.multiplier,
        extra_bet=request.extra_bet,
    )
    logger.info(
        "Spin settled: user=%s bet=%s lines=%s multiplier=%s win=%s balance=%s",
        request.user_id,
        request.bet_amount,
        [line.line_id for line in outcome.winning_lines],
        outcome.multiplier,
        outcome.total_win,
        new_balance,
    )
    return BetResult(
        grid=outcome.grid,
        win_amount=outcome.win_amount,
        multiplier=outcome.multiplier,
        winning_lines=outcome.winning_lines,
        new_balance=new_balance,
        total_win=outcome.total_win,
        initial_grid=outcome.initial_grid,
        initial_lines=outcome.initial.winning_lines,
    )
