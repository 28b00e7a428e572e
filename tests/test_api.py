import random
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from support import make_grid, memory_session_factory, no_win_symbols

from jokerslot import models
from jokerslot.exceptions import ConfigurationError, PersistenceError
from jokerslot.ledger import BalanceLedger, OverdraftPolicy
from jokerslot.main import app, get_ledger, get_rng


class ApiTestCase(unittest.TestCase):
    overdraft_policy = OverdraftPolicy.ALLOW
    starting_balance = 10000

    def setUp(self):
        self.SessionLocal = memory_session_factory()
        source = random.Random(2024)

        def override_ledger():
            db = self.SessionLocal()
            try:
                yield BalanceLedger(
                    db, policy=self.overdraft_policy, starting_balance=self.starting_balance
                )
            finally:
                db.close()

        app.dependency_overrides[get_ledger] = override_ledger
        app.dependency_overrides[get_rng] = lambda: source
        self.addCleanup(app.dependency_overrides.clear)
        self.client = TestClient(app)

    def balance(self, user_id):
        return self.client.get(f"/api/user/{user_id}/balance").json()["balance"]

    def bet_rows(self):
        db = self.SessionLocal()
        try:
            return db.query(models.Bet).all()
        finally:
            db.close()


class TestBalanceRoutes(ApiTestCase):

    def test_balance_creates_user_on_first_reference(self):
        response = self.client.get("/api/user/12/balance")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"balance": 10000})
        self.assertEqual(self.balance(12), 10000)

    def test_create_user(self):
        response = self.client.post("/user", json={"username": "alice"})
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["username"], "alice")
        self.assertEqual(body["balance"], 10000)

    def test_duplicate_user(self):
        self.client.post("/user", json={"username": "alice"})
        response = self.client.post("/user", json={"username": "alice"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Failed to create user"})


class TestBetRoute(ApiTestCase):

    def test_bet_response_shape(self):
        response = self.client.post("/bet", json={"userId": 1, "betAmount": 100, "extraBet": False})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(
            set(body), {"grid", "newBalance", "winAmount", "lineWin", "multiplier", "winningLines"}
        )
        self.assertEqual(len(body["grid"]), 6)
        for row in body["grid"]:
            self.assertEqual(len(row), 6)
            for cell in row:
                self.assertEqual(set(cell), {"type", "isGolden", "jokerType", "jokerSize"})
            self.assertFalse(row[0]["isGolden"])
            self.assertFalse(row[5]["isGolden"])
        self.assertEqual(body["winAmount"], body["lineWin"] * body["multiplier"])
        self.assertEqual(body["newBalance"], 10000 - 100 + body["winAmount"])
        self.assertEqual(self.balance(1), body["newBalance"])
        for line in body["winningLines"]:
            self.assertTrue(0 <= line["line"] <= 11)

    @patch("jokerslot.spin.generate_grid")
    def test_column_win_scenario(self, mock_generate_grid):
        symbols = no_win_symbols()
        for r in range(6):
            symbols[r][0] = "7"
        mock_generate_grid.return_value = make_grid(symbols)

        response = self.client.post("/bet", json={"userId": 3, "betAmount": 100})

        body = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["winningLines"], [{"line": 6, "symbol": "7"}])
        self.assertEqual(body["lineWin"], 20)
        self.assertEqual(body["multiplier"], 2)
        self.assertEqual(body["winAmount"], 40)
        self.assertEqual(body["newBalance"], 9940)
        (bet,) = self.bet_rows()
        self.assertEqual((bet.user_id, bet.amount, bet.win_amount, bet.balance_after), (3, 100, 40, 9940))

    @patch("jokerslot.spin.generate_grid")
    def test_user_scoped_route_with_extra_bet(self, mock_generate_grid):
        mock_generate_grid.return_value = make_grid(no_win_symbols())

        response = self.client.post("/api/user/5/bet", json={"betAmount": 300, "extraBet": True})

        body = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["winningLines"], [])
        self.assertEqual(body["multiplier"], 2)
        self.assertEqual(body["winAmount"], 0)
        self.assertEqual(body["newBalance"], 9700)

    def test_non_positive_bet_is_rejected(self):
        for amount in (0, -10):
            with self.subTest(amount=amount):
                response = self.client.post("/bet", json={"userId": 1, "betAmount": amount})
                self.assertEqual(response.status_code, 422)
                self.assertEqual(response.json(), {"error": "Failed to process bet"})
        self.assertEqual(self.bet_rows(), [])

    def test_missing_fields_rejected(self):
        response = self.client.post("/bet", json={"betAmount": 10})
        self.assertEqual(response.status_code, 422)

    @patch("jokerslot.ledger.BalanceLedger.settle")
    def test_persistence_failure_returns_generic_error(self, mock_settle):
        mock_settle.side_effect = PersistenceError()
        response = self.client.post("/bet", json={"userId": 1, "betAmount": 100})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to process bet"})
        self.assertEqual(self.balance(1), 10000)

    @patch("jokerslot.spin.generate_grid")
    def test_broken_symbol_configuration(self, mock_generate_grid):
        symbols = no_win_symbols()
        symbols[0][0] = "jack"
        mock_generate_grid.return_value = make_grid(symbols)
        response = self.client.post("/bet", json={"userId": 1, "betAmount": 100})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to process bet"})
        self.assertEqual(self.balance(1), 10000)
        self.assertEqual(self.bet_rows(), [])

    @patch("jokerslot.main.resolve_spin")
    def test_unexpected_error_returns_json_error(self, mock_resolve_spin):
        mock_resolve_spin.side_effect = RuntimeError("boom")
        client = TestClient(app, raise_server_exceptions=False)
        response = client.post("/bet", json={"userId": 1, "betAmount": 100})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to process bet"})
        self.assertEqual(self.balance(1), 10000)
        self.assertEqual(self.bet_rows(), [])

    @patch("jokerslot.ledger.BalanceLedger.ensure_user")
    def test_unexpected_error_on_balance_route(self, mock_ensure_user):
        mock_ensure_user.side_effect = KeyError("users")
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/api/user/1/balance")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to fetch/create balance"})


class TestRejectOverdraft(ApiTestCase):
    overdraft_policy = OverdraftPolicy.REJECT
    starting_balance = 50

    @patch("jokerslot.spin.generate_grid")
    def test_unaffordable_losing_bet_is_refused(self, mock_generate_grid):
        mock_generate_grid.return_value = make_grid(no_win_symbols())
        response = self.client.post("/bet", json={"userId": 8, "betAmount": 100})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Failed to process bet"})
        self.assertEqual(self.balance(8), 50)


class TestConfigurationErrorType(unittest.TestCase):

    def test_configuration_error_is_server_side(self):
        self.assertEqual(ConfigurationError().status_code, 500)


if __name__ == "__main__":
    unittest.main()
