"""Tests for the scripted console scenarios."""

from console_demo import ConsoleSession
from src.booking.state_machine import BookingStep
from tests.conftest import run


class TestScenarios:
    def test_booking_scenario_commits(self, capsys):
        console = ConsoleSession()
        run(console.run_scenario("booking"))

        lines = console.ledger.all_lines()
        assert [(l.item_id, l.quantity) for l in lines] == [("sup", 2), ("kanu", 1)]
        assert lines[0].customer_address == "Aarestrasse 1, 3600 Thun, Switzerland"
        assert lines[0].customer_phone == "+41791234567"
        assert console.session.current_step == BookingStep.SELECTION
        assert "Booking confirmed" in capsys.readouterr().out

    def test_sold_out_scenario_caps_quantity(self):
        console = ConsoleSession()
        run(console.run_scenario("sold_out"))

        assert sum(l.quantity for l in console.ledger.all_lines()) == 2
        assert console.session.draft.get_line("large-raft").chosen_quantity == 0

    def test_partial_commit_scenario_reports_risk(self, capsys):
        console = ConsoleSession()
        run(console.run_scenario("partial_commit"))

        assert len(console.ledger.all_lines()) == 1
        assert console.session.current_step == BookingStep.DETAILS_ENTRY
        assert "PartialCommitRisk" in capsys.readouterr().out

    def test_unknown_command(self, capsys):
        console = ConsoleSession()
        run(console.handle("dance"))
        assert "Unknown command" in capsys.readouterr().out

    def test_bad_date_reported(self, capsys):
        console = ConsoleSession()
        run(console.handle("date tomorrow"))
        assert "Could not read that value" in capsys.readouterr().out
