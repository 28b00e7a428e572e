import logging
import os

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pythonjsonlogger import jsonlogger
from sqlalchemy.orm import Session

from . import schemas
from .database import Base, engine, get_db
from .exceptions import SpinError
from .ledger import BalanceLedger, OverdraftPolicy
from .models import DEFAULT_STARTING_BALANCE
from .rng import RandomSource, get_random_source
from .spin import BetRequest, resolve_spin
from .symbols import SymbolTable, default_symbol_table, load_symbol_table

SYMBOL_TABLE_PATH = os.environ.get("SLOT_SYMBOL_TABLE")
RNG_STRATEGY = os.environ.get("SLOT_RNG", "mersenne")
RNG_SEED = os.environ.get("SLOT_RNG_SEED")
OVERDRAFT_POLICY = OverdraftPolicy(
    os.environ.get("SLOT_OVERDRAFT_POLICY", OverdraftPolicy.ALLOW.value).lower()
)
STARTING_BALANCE = int(os.environ.get("SLOT_STARTING_BALANCE", DEFAULT_STARTING_BALANCE))
LOG_LEVEL = os.environ.get("SLOT_LOG_LEVEL", "INFO")
CORS_ORIGINS = [
    o.strip()
    for o in os.environ.get(
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    if o.strip()
]

ROUTE_ERRORS = {
    "place_bet": "Failed to process bet",
    "place_user_bet": "Failed to process bet",
    "get_balance": "Failed to fetch/create balance",
    "create_user": "Failed to create user",
}
DEFAULT_ERROR = "Request failed"

logger = logging.getLogger("jokerslot")


def configure_logging(level: str = LOG_LEVEL) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(module)s %(funcName)s %(lineno)d %(message)s"
        )
    )
    if logger.hasHandlers():
        logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level.upper())


def _route_error(request: Request) -> str:
    route = request.scope.get("route")
    return ROUTE_ERRORS.get(getattr(route, "name", None), DEFAULT_ERROR)


configure_logging()

symbol_table = load_symbol_table(SYMBOL_TABLE_PATH) if SYMBOL_TABLE_PATH else default_symbol_table()
rng = get_random_source(RNG_STRATEGY, int(RNG_SEED) if RNG_SEED else None)


def get_symbol_table() -> SymbolTable:
    return symbol_table


def get_rng() -> RandomSource:
    return rng


def get_ledger(db: Session = Depends(get_db)) -> BalanceLedger:
    return BalanceLedger(db, policy=OVERDRAFT_POLICY, starting_balance=STARTING_BALANCE)


app = FastAPI(
    title="Joker Slot",
    description="6x6 slot spin resolution with golden-cell joker conversion.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup() -> None:
    Base.metadata.create_all(bind=engine)


@app.exception_handler(SpinError)
async def handle_spin_error(request: Request, exc: SpinError):
    logger.error(
        "%s %s failed: %s - %s - details: %s",
        request.method,
        request.url.path,
        exc.error_code,
        exc.status_message,
        exc.details,
        exc_info=exc.status_code >= 500,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": _route_error(request)})


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=422, content={"error": _route_error(request)})


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(
        "%s %s failed unexpectedly: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"error": _route_error(request)})


def run_bet(
    ledger: BalanceLedger,
    table: SymbolTable,
    source: RandomSource,
    user_id: int,
    body: schemas.BetBody,
) -> dict:
    ledger.ensure_user(user_id)
    result = resolve_spin(
        BetRequest(user_id=user_id, bet_amount=body.bet_amount, extra_bet=body.extra_bet),
        table,
        source,
        ledger,
    )
    return result.to_dict()


@app.post("/bet", response_model=schemas.BetResponse, name="place_bet")
def place_bet(
    payload: schemas.BetRequestBody,
    ledger: BalanceLedger = Depends(get_ledger),
    table: SymbolTable = Depends(get_symbol_table),
    source: RandomSource = Depends(get_rng),
):
    return run_bet(ledger, table, source, payload.user_id, payload)


@app.post("/api/user/{user_id}/bet", response_model=schemas.BetResponse, name="place_user_bet")
def place_user_bet(
    user_id: int,
    payload: schemas.BetBody,
    ledger: BalanceLedger = Depends(get_ledger),
    table: SymbolTable = Depends(get_symbol_table),
    source: RandomSource = Depends(get_rng),
):
    return run_bet(ledger, table, source, user_id, payload)


@app.get("/api/user/{user_id}/balance", response_model=schemas.BalanceResponse, name="get_balance")
def get_balance(user_id: int, ledger: BalanceLedger = Depends(get_ledger)):
    return schemas.BalanceResponse(balance=ledger.ensure_user(user_id))


@app.post("/user", response_model=schemas.UserItem, status_code=201, name="create_user")
def create_user(payload: schemas.UserCreate, ledger: BalanceLedger = Depends(get_ledger)):
    return ledger.create_user(payload.username)
