from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple

from .rng import RandomSource, draw_index
from .symbols import SymbolTable

GRID_SIZE = 6
GOLDEN_CHANCE = 0.15
GOLDEN_MIN_COL = 1
GOLDEN_MAX_COL = 4
GUARANTEED_WIN_CHANCE = 0.8

JOKER_NONE = "none"
JOKER_SMALL = "small"
JOKER_BIG = "big"


@dataclass(frozen=True)
class Cell:
    symbol_id: str
    is_golden: bool = False
    joker_kind: str = JOKER_NONE
    joker_size: int = 0

    def __post_init__(self):
        if self.joker_kind != JOKER_NONE and self.is_golden:
            raise ValueError("A joker cell cannot be golden")

    def to_dict(self) -> dict:
        return {
            "type": self.symbol_id,
            "isGolden": self.is_golden,
            "jokerType": None if self.joker_kind == JOKER_NONE else self.joker_kind,
            "jokerSize": self.joker_size,
        }


class Grid:
    """Immutable 6x6 matrix of cells indexed ``grid[row][col]``."""

    __slots__ = ("_rows",)

    def __init__(self, rows: Sequence[Sequence[Cell]]):
        frozen = tuple(tuple(row) for row in rows)
        if len(frozen) != GRID_SIZE or any(len(row) != GRID_SIZE for row in frozen):
            raise ValueError(f"Grid must be {GRID_SIZE}x{GRID_SIZE}")
        self._rows: Tuple[Tuple[Cell, ...], ...] = frozen

    def __getitem__(self, row: int) -> Tuple[Cell, ...]:
        return self._rows[row]

    def __iter__(self) -> Iterator[Tuple[Cell, ...]]:
        return iter(self._rows)

    def __len__(self) -> int:
        return GRID_SIZE

    def __eq__(self, other) -> bool:
        return isinstance(other, Grid) and self._rows == other._rows

    def __hash__(self) -> int:
        return hash(self._rows)

    def __repr__(self) -> str:
        return "Grid(" + " / ".join(" ".join(c.symbol_id for c in row) for row in self._rows) + ")"

    def row(self, index: int) -> Tuple[Cell, ...]:
        return self._rows[index]

    def column(self, index: int) -> Tuple[Cell, ...]:
        return tuple(row[index] for row in self._rows)

    def cells(self) -> Iterator[Tuple[int, int, Cell]]:
        for r, row in enumerate(self._rows):
            for c, cell in enumerate(row):
                yield r, c, cell

    def to_list(self) -> List[List[dict]]:
        return [[cell.to_dict() for cell in row] for row in self._rows]


def _draw_golden(rng: RandomSource, col: int) -> bool:
    # one draw per cell regardless of column so draw order stays fixed
    value = rng.random()
    return GOLDEN_MIN_COL <= col <= GOLDEN_MAX_COL and value < GOLDEN_CHANCE


def generate_grid(table: SymbolTable, rng: RandomSource) -> Grid:
    """Fill a 6x6 grid by weighted draw, mark golden cells and, 80% of the
    time, overwrite one random column with a single regular symbol.

    Draw order: for each cell in row-major order a symbol draw then a golden
    draw; then the guaranteed-win draw; if it hits, a symbol index, a column
    index and one golden draw per overwritten cell.
    """
    rows: List[List[Cell]] = []
    for _ in range(GRID_SIZE):
        row = []
        for col in range(GRID_SIZE):
            symbol = table.weighted_pick(rng.random())
            row.append(Cell(symbol.id, is_golden=_draw_golden(rng, col)))
        rows.append(row)

    if rng.random() < GUARANTEED_WIN_CHANCE:
        regular = table.regular_symbols()
        winning_symbol = regular[draw_index(rng, len(regular))]
        column = draw_index(rng, GRID_SIZE)
        for row in rows:
            row[column] = Cell(winning_symbol.id, is_golden=_draw_golden(rng, column))

    return Grid(rows)
