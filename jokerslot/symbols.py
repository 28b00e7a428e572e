import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

REGULAR = "regular"
WILD = "wild"
SCATTER = "scatter"
CATEGORIES = (REGULAR, WILD, SCATTER)

SMALL_JOKER = "SMALL_JOKER"
BIG_JOKER = "BIG_JOKER"

DEFAULT_SYMBOLS: Dict[str, dict] = {
    "7": {"payout": 20, "category": REGULAR, "weight": 1},
    "8": {"payout": 20, "category": REGULAR, "weight": 1},
    "9": {"payout": 20, "category": REGULAR, "weight": 1},
    "J": {"payout": 30, "category": REGULAR, "weight": 1},
    "Q": {"payout": 30, "category": REGULAR, "weight": 1},
    "K": {"payout": 40, "category": REGULAR, "weight": 1},
    "A": {"payout": 50, "category": REGULAR, "weight": 1},
    "GOLD": {"payout": 100, "category": REGULAR, "weight": 1},
    "DIAMOND": {"payout": 80, "category": REGULAR, "weight": 2},
    "CLUB": {"payout": 60, "category": REGULAR, "weight": 3},
    "HEART": {"payout": 50, "category": REGULAR, "weight": 4},
    "SPADE": {"payout": 40, "category": REGULAR, "weight": 5},
    "WILD": {"payout": 0, "category": WILD, "weight": 1},
    SMALL_JOKER: {"payout": 0, "category": WILD, "weight": 2},
    BIG_JOKER: {"payout": 0, "category": WILD, "weight": 1},
    "SCATTER": {"payout": 0, "category": SCATTER, "weight": 1},
}


@dataclass(frozen=True)
class Symbol:
    id: str
    payout: int
    category: str
    weight: int


class SymbolTable:
    """Immutable symbol configuration shared by every stage of a spin.

    Table order matters: ``weighted_pick`` walks the regular symbols in the
    order they were given.
    """

    def __init__(self, symbols: List[Symbol]):
        self._symbols: Tuple[Symbol, ...] = tuple(symbols)
        self._by_id: Dict[str, Symbol] = {s.id: s for s in self._symbols}
        self._regular: Tuple[Symbol, ...] = tuple(
            s for s in self._symbols if s.category == REGULAR
        )
        self._total_weight = sum(s.weight for s in self._regular)

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping]) -> "SymbolTable":
        _validate_symbol_data(data)
        return cls(
            [
                Symbol(
                    id=str(symbol_id),
                    payout=entry["payout"],
                    category=entry["category"],
                    weight=entry.get("weight", 1),
                )
                for symbol_id, entry in data.items()
            ]
        )

    def __contains__(self, symbol_id: str) -> bool:
        return symbol_id in self._by_id

    def __len__(self) -> int:
        return len(self._symbols)

    def get(self, symbol_id: str) -> Symbol:
        try:
            return self._by_id[symbol_id]
        except KeyError:
            raise ConfigurationError(
                f"Symbol '{symbol_id}' is not in the symbol table",
                details={"symbol_id": symbol_id},
            ) from None

    def regular_symbols(self) -> Tuple[Symbol, ...]:
        return self._regular

    def total_weight(self) -> int:
        return self._total_weight

    def weighted_pick(self, fraction: float) -> Symbol:
        """Select a regular symbol for a uniform ``fraction`` in [0, 1).

        ``fraction * total_weight`` is used as a cursor; each symbol's weight
        is subtracted in table order and the symbol that takes the cursor to
        zero or below is returned. Zero-weight symbols are skipped.
        """
        cursor = fraction * self._total_weight
        last = None
        for symbol in self._regular:
            if symbol.weight <= 0:
                continue
            last = symbol
            cursor -= symbol.weight
            if cursor <= 0:
                return symbol
        if last is None:
            raise ConfigurationError("Symbol table has no selectable regular symbols")
        # float rounding at fraction -> 1.0
        return last


def _validate_symbol_data(data: Mapping[str, Mapping]) -> None:
    if not isinstance(data, Mapping) or not data:
        raise ConfigurationError("Symbol table must be a non-empty mapping")
    for symbol_id, entry in data.items():
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"Symbol '{symbol_id}' must be a mapping")
        payout = entry.get("payout")
        if not isinstance(payout, int) or isinstance(payout, bool) or payout < 0:
            raise ConfigurationError(
                f"Symbol '{symbol_id}' payout must be a non-negative integer"
            )
        if entry.get("category") not in CATEGORIES:
            raise ConfigurationError(
                f"Symbol '{symbol_id}' category must be one of {', '.join(CATEGORIES)}"
            )
        weight = entry.get("weight", 1)
        if not isinstance(weight, int) or isinstance(weight, bool) or weight < 0:
            raise ConfigurationError(
                f"Symbol '{symbol_id}' weight must be a non-negative integer"
            )
    if not any(
        e["category"] == REGULAR and e.get("weight", 1) > 0 for e in data.values()
    ):
        raise ConfigurationError("Symbol table needs a regular symbol with positive weight")
    joker = data.get(SMALL_JOKER)
    if joker is None or joker["category"] != WILD:
        raise ConfigurationError(f"Symbol table must define '{SMALL_JOKER}' as a wild")


def load_symbol_table(path: str | Path) -> SymbolTable:
    file_path = Path(path)
    try:
        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Symbol table file not found: {file_path}") from None
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in {file_path}: {e.msg} (line {e.lineno}, col {e.colno})"
        ) from None
    table = SymbolTable.from_dict(data)
    logger.info("Loaded %d symbols from %s", len(table), file_path)
    return table


def default_symbol_table() -> SymbolTable:
    return SymbolTable.from_dict(DEFAULT_SYMBOLS)
