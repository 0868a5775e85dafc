"""
REPL command tests (no stdin involved; commands are fed directly).
"""
import pytest

from application.venue import Venue
from cli_play import parse_int, run_command
from engine.clock import ManualClock
from engine.errors import NotOwner
from infrastructure.config import BookConfig

W = 10 ** 18


class TestParseInt:

    def test_scientific_notation_is_exact(self):
        assert parse_int("200e18") == 200 * W
        assert parse_int("1.5e18") == 15 * 10 ** 17
        assert parse_int("-1e18") == -W
        assert parse_int("42") == 42

    @pytest.mark.parametrize("text", ["abc", "1.5", "", "inf", "-Infinity", "nan", "snan"])
    def test_rejects_non_integers(self, text):
        with pytest.raises(ValueError):
            parse_int(text)


class TestRunCommand:

    def setup_method(self):
        self.venue = Venue(BookConfig.TESTING(), clock=ManualClock(start=0))

    def run(self, who, line):
        return run_command(self.venue, who, line.split())

    def test_full_session(self, capsys):
        assert self.run("alice", "as bob") == "bob"
        self.run("alice", "mint USD 200e18")
        self.run("bob", "mint ETH 100e18")
        self.run("alice", "buy USD ETH 1e18 0 200e18")
        self.run("bob", "sell ETH USD 1e18 0 100e18")
        self.run("carol", "match 1 2")

        out = capsys.readouterr().out
        assert "matched base=100000000000000000000 quote=100000000000000000000" in out
        assert self.venue.ledger.balance_of("ETH", "alice") == 100 * W

        self.run("alice", "cancel 1")
        assert "refunded 100000000000000000000" in capsys.readouterr().out

    def test_show_and_price(self, capsys):
        self.run("bob", "mint ETH 1e18")
        self.run("bob", "sell ETH USD 10e18 -1e18 1e18")
        self.run("bob", "advance 4")
        self.run("bob", "price 1")
        self.run("bob", "show 1")

        out = capsys.readouterr().out
        assert "6000000000000000000" in out
        assert "dutch" in out
        assert "valid-until=10" in out

    def test_show_negative_price(self, capsys):
        self.run("bob", "mint ETH 1e18")
        self.run("bob", "sell ETH USD 1e18 -1e18 1e18")
        self.run("bob", "advance 5")
        self.run("bob", "show 1")
        assert "px@now=NEGATIVE" in capsys.readouterr().out

    def test_engine_errors_propagate(self):
        self.run("alice", "mint USD 1e18")
        self.run("alice", "buy USD ETH 1e18 0 1e18")
        with pytest.raises(NotOwner):
            self.run("mallory", "cancel 1")

    def test_unknown_command(self, capsys):
        self.run("alice", "frobnicate")
        assert "Unknown command." in capsys.readouterr().out
