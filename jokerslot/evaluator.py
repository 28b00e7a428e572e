from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple

from .grid import GRID_SIZE, JOKER_SMALL, Cell, Grid
from .symbols import REGULAR, SMALL_JOKER, WILD, SymbolTable

COLUMN_LINE_OFFSET = GRID_SIZE
MAX_MULTIPLIER = 5
MAX_MULTIPLIER_EXTRA_BET = 10


@dataclass(frozen=True)
class WinLine:
    line_id: int
    symbol_id: str

    @property
    def is_column(self) -> bool:
        return self.line_id >= COLUMN_LINE_OFFSET

    def covers(self, row: int, col: int) -> bool:
        if self.is_column:
            return self.line_id - COLUMN_LINE_OFFSET == col
        return self.line_id == row

    def to_dict(self) -> dict:
        return {"line": self.line_id, "symbol": self.symbol_id}


@dataclass(frozen=True)
class Evaluation:
    win_amount: int = 0
    winning_lines: Tuple[WinLine, ...] = field(default_factory=tuple)


def _scan_lines(grid: Grid) -> Iterable[Tuple[int, Tuple[Cell, ...]]]:
    for col in range(GRID_SIZE):
        yield col + COLUMN_LINE_OFFSET, grid.column(col)
    for row in range(GRID_SIZE):
        yield row, grid.row(row)


def _line_base(cells: Sequence[Cell], table: SymbolTable) -> str | None:
    symbols = [table.get(cell.symbol_id) for cell in cells]
    base = next((s for s in symbols if s.category == REGULAR), symbols[0])
    matched = sum(
        1
        for s in symbols
        if s.category == WILD or (s.category == REGULAR and s.id == base.id)
    )
    if matched != len(symbols):
        return None
    return base.id


def evaluate(grid: Grid, table: SymbolTable) -> Evaluation:
    """Scan columns then rows for lines where every cell is the base regular
    symbol or a wild.

    The base is the first regular cell of the line, or the first cell when the
    line is all wild. Each winning line adds its base symbol's payout; a line
    whose base pays 0 is still reported.
    """
    win_amount = 0
    winning_lines: List[WinLine] = []
    for line_id, cells in _scan_lines(grid):
        base_id = _line_base(cells, table)
        if base_id is None:
            continue
        win_amount += table.get(base_id).payout
        winning_lines.append(WinLine(line_id=line_id, symbol_id=base_id))
    return Evaluation(win_amount=win_amount, winning_lines=tuple(winning_lines))


def transform_golden(grid: Grid, winning_lines: Sequence[WinLine]) -> Grid:
    """Return a copy of ``grid`` with every golden cell on a winning line
    turned into a small joker. Cells already converted are no longer golden
    and are left alone."""
    if not winning_lines:
        return grid
    rows = []
    for r, row in enumerate(grid):
        new_row = []
        for c, cell in enumerate(row):
            if cell.is_golden and any(line.covers(r, c) for line in winning_lines):
                cell = Cell(SMALL_JOKER, is_golden=False, joker_kind=JOKER_SMALL, joker_size=1)
            new_row.append(cell)
        rows.append(new_row)
    return Grid(rows)


def calculate_multiplier(line_count: int, extra_bet: bool = False) -> int:
    if line_count < 0:
        raise ValueError("line_count must be non-negative")
    if extra_bet:
        return min(MAX_MULTIPLIER_EXTRA_BET, 2 + line_count)
    return min(MAX_MULTIPLIER, 1 + line_count)
