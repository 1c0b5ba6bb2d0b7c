"""
Offline console demo: runs the booking dialog flow against in-memory stores.

Uses the real availability calculator, booking state machine, validator
and submitter with the in-memory catalog and ledger. No data store, no
network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario booking
    python console_demo.py --scenario sold_out
    python console_demo.py --scenario partial_commit
"""

import argparse
import asyncio
import datetime
import shlex
from typing import Optional

from src.booking.session import BookingSession, LedgerRefreshSignal
from src.config import settings
from src.exceptions import BookingError
from src.schemas.booking_schema import ContactForm
from src.tools.address import PlaceSuggestion, StaticAddressLookup
from src.tools.catalog import InMemoryCatalog
from src.tools.ledger import InMemoryLedger
from src.tools.schedule import TIME_SLOTS
from src.utils import format_money

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

HELP_TEXT = """Commands:
  date YYYY-MM-DD        choose a date and load availability
  time HH:MM             choose a time slot
  + ITEM / - ITEM        add or remove one unit of an item
  next                   go to contact details
  back                   return to the selection step
  confirm NAME PHONE EMAIL CONFIRM_EMAIL ADDRESS
  refresh                reload availability
  close                  discard everything
  quit                   exit"""


def _tomorrow() -> str:
    return (datetime.date.today() + datetime.timedelta(days=1)).isoformat()


class ConsoleSession:
    """Drives one BookingSession from typed or scripted commands."""

    def __init__(self) -> None:
        self.catalog = InMemoryCatalog()
        self.ledger = InMemoryLedger()
        self.signal = LedgerRefreshSignal()
        self.session = self._new_session()

    def _new_session(self) -> BookingSession:
        lookup = StaticAddressLookup({
            "aarestrasse": PlaceSuggestion(
                formatted_address="Aarestrasse 1, 3600 Thun, Switzerland",
            ),
        })
        return BookingSession(
            self.catalog, self.ledger, self.ledger,
            refresh_signal=self.signal,
            address_lookup=lookup,
        )

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def scenarios(self) -> dict[str, list[str]]:
        day = _tomorrow()
        return {
            "booking": [
                f"date {day}",
                "time 11:00",
                "+ sup",
                "+ sup",
                "+ kanu",
                "next",
                "confirm 'John Aareboots' '+41 79 123 45 67' you@example.com you@example.com aarestrasse",
            ],
            "sold_out": [
                f"date {day}",
                "+ large-raft", "+ large-raft", "+ large-raft",
                "next",
                "confirm 'Jane Doe' +41791234567 jane@example.com jane@example.com 'Main Street 1, 3000 Bern'",
                f"date {day}",
                "+ large-raft",
            ],
            "partial_commit": [
                f"date {day}",
                "+ sup",
                "+ small-raft",
                "next",
                "!partial",
                "confirm 'Max Muster' +41791234567 max@example.com max@example.com 'Bahnhofplatz 1, Bern'",
            ],
        }

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.scenarios().get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  RAFT BOOKING - Scenario: {scenario}{RESET}")
        print(f"{BOLD}  Time slots: {', '.join(TIME_SLOTS)}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        for step in steps:
            print(f"\n{BLUE}[Customer] {RESET}{step}")
            await self.handle(step)
            self.system_log(f"Step: {self.session.current_step.value}")

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{DIM}  Step trace: {' -> '.join(self.session.get_step_trace())}{RESET}")
        print(f"{DIM}  Ledger lines: {len(self.ledger.all_lines())}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    async def run(self) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  RAFT BOOKING - Console Demo{RESET}")
        print(f"{BOLD}  Type 'help' for commands, 'quit' to exit{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        while True:
            user_input = input(f"\n{BLUE}[Customer] {RESET}").strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            await self.handle(user_input)
            self.system_log(f"Step: {self.session.current_step.value}")

    async def handle(self, text: str) -> None:
        try:
            parts = shlex.split(text)
        except ValueError:
            self.say("Could not read that command.")
            return
        command, args = parts[0].lower(), parts[1:]

        try:
            await self._dispatch(command, args)
        except BookingError as exc:
            print(f"{YELLOW}{type(exc).__name__}: {exc}{RESET}")
        except ValueError as exc:
            self.say(f"Could not read that value: {exc}")

    async def _dispatch(self, command: str, args: list[str]) -> None:
        s = self.session
        if command == "help":
            print(HELP_TEXT)
        elif command == "date" and len(args) == 1:
            await s.choose_date(datetime.date.fromisoformat(args[0]))
            self._show_availability()
        elif command == "time" and len(args) == 1:
            s.choose_time(args[0])
            self.say(f"Time set to {args[0]}.")
        elif command in ("+", "-") and len(args) == 1:
            quantity = s.change_quantity(args[0], 1 if command == "+" else -1)
            self.say(f"{args[0]}: {quantity}  (total {self._money(s.total_cost)})")
        elif command == "next":
            snapshot = s.proceed_to_details()
            for line in snapshot.lines:
                self.say(f"  {line.name} x {line.quantity} ({self._money(line.line_total)})")
            self.say(f"  Total: {self._money(snapshot.total_cost)} on {snapshot.date} at {snapshot.time}")
        elif command == "back":
            await s.back_to_selection()
            self._show_availability()
        elif command == "refresh":
            await s.refresh_availability()
            self._show_availability()
        elif command == "!partial":
            self.ledger.partial_after = 1
            self.system_log("Ledger will fail after persisting one line.")
        elif command == "confirm" and len(args) == 5:
            name, phone, email, confirm_email, address = args
            form = ContactForm(
                name=name,
                phone=phone,
                email=email,
                confirm_email=confirm_email,
                address=s.suggest_address(address),
            )
            result = await s.confirm_submission(form)
            self.say(
                f"Booking confirmed: {result.lines_written} line(s), "
                f"{self._money(result.total_cost)}."
            )
            s.close()
        elif command == "close":
            s.close()
            self.say("Booking discarded.")
        else:
            self.say("Unknown command. Type 'help'.")

    def _show_availability(self) -> None:
        s = self.session
        if s.availability_error:
            print(f"{RED}{s.availability_error}{RESET}")
            return
        for row, line in zip(s.availability, s.draft.lines):
            label = f"Available: {row.remaining}" if row.remaining > 0 else "Unavailable"
            self.say(
                f"  {row.id:<12} {row.name:<12} {self._money(row.unit_price):>12}  "
                f"{label:<14} [{row.stock_level.value}]  chosen {line.chosen_quantity}"
            )

    @staticmethod
    def _money(amount) -> str:
        return format_money(amount, settings.inventory.currency)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Offline booking console demo")
    parser.add_argument(
        "--scenario",
        choices=["booking", "sold_out", "partial_commit"],
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args(argv)

    console = ConsoleSession()
    if args.scenario:
        asyncio.run(console.run_scenario(args.scenario))
    else:
        asyncio.run(console.run())


if __name__ == "__main__":
    main()
