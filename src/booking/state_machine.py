"""
Finite state machine for the booking dialog steps.

Defines the three booking steps and explicit transitions with triggers.
Every session follows a deterministic path through the step graph, so a
reservation can only be submitted from a frozen, complete selection.

Usage:
    sm = BookingStateMachine()
    sm.transition(BookingTrigger.PROCEED)
    assert sm.current_step == BookingStep.DETAILS_ENTRY
"""

import logging
from enum import Enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from src.exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)


class BookingStep(str, Enum):
    """All steps of a booking dialog."""
    SELECTION = "selection"
    DETAILS_ENTRY = "details_entry"
    COMMITTED = "committed"


class BookingTrigger(str, Enum):
    """Events that act on the booking dialog."""
    DATE_CHOSEN = "date_chosen"
    TIME_CHOSEN = "time_chosen"
    QUANTITY_CHANGED = "quantity_changed"
    AVAILABILITY_LOADED = "availability_loaded"
    PROCEED = "proceed"
    BACK_TO_SELECTION = "back_to_selection"
    SUBMISSION_SUCCEEDED = "submission_succeeded"
    CANCEL = "cancel"


@dataclass
class Transition:
    """A single valid step transition."""
    from_step: BookingStep
    to_step: BookingStep
    trigger: BookingTrigger


@dataclass
class StepEntry:
    """Recorded history entry for a step visit."""
    step: BookingStep
    entered_at: datetime
    trigger: Optional[BookingTrigger] = None


class BookingStateMachine:
    """
    Deterministic state machine controlling the booking dialog.

    Every transition must be explicitly defined. An event without a
    corresponding transition from the current step is rejected with an
    error listing the triggers that are allowed.
    """

    TRANSITIONS: list[Transition] = [
        # --- Selection edits ---
        Transition(BookingStep.SELECTION, BookingStep.SELECTION,
                   BookingTrigger.DATE_CHOSEN),
        Transition(BookingStep.SELECTION, BookingStep.SELECTION,
                   BookingTrigger.TIME_CHOSEN),
        Transition(BookingStep.SELECTION, BookingStep.SELECTION,
                   BookingTrigger.QUANTITY_CHANGED),
        Transition(BookingStep.SELECTION, BookingStep.SELECTION,
                   BookingTrigger.AVAILABILITY_LOADED),

        # --- Step boundary ---
        Transition(BookingStep.SELECTION, BookingStep.DETAILS_ENTRY,
                   BookingTrigger.PROCEED),
        Transition(BookingStep.DETAILS_ENTRY, BookingStep.SELECTION,
                   BookingTrigger.BACK_TO_SELECTION),

        # --- Submission ---
        Transition(BookingStep.DETAILS_ENTRY, BookingStep.COMMITTED,
                   BookingTrigger.SUBMISSION_SUCCEEDED),

        # --- Cancel / close ---
        Transition(BookingStep.SELECTION, BookingStep.SELECTION,
                   BookingTrigger.CANCEL),
        Transition(BookingStep.DETAILS_ENTRY, BookingStep.SELECTION,
                   BookingTrigger.CANCEL),
        Transition(BookingStep.COMMITTED, BookingStep.SELECTION,
                   BookingTrigger.CANCEL),
    ]

    def __init__(self) -> None:
        self._current_step = BookingStep.SELECTION
        self._history: list[StepEntry] = [
            StepEntry(step=BookingStep.SELECTION, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_step(self) -> BookingStep:
        return self._current_step

    def can_handle(self, trigger: BookingTrigger) -> bool:
        return trigger in self.get_valid_triggers()

    def require(self, trigger: BookingTrigger) -> None:
        """Raise InvalidTransitionError unless trigger is valid from the current step."""
        if not self.can_handle(trigger):
            raise self._invalid(trigger)

    def transition(self, trigger: BookingTrigger) -> BookingStep:
        """
        Execute a step transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new booking step.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_step == self._current_step and t.trigger == trigger:
                old_step = self._current_step
                self._current_step = t.to_step

                if old_step != self._current_step:
                    self._history.append(StepEntry(
                        step=self._current_step,
                        entered_at=datetime.now(timezone.utc),
                        trigger=trigger,
                    ))

                logger.debug(
                    "Booking transition: %s -> %s (trigger: %s)",
                    old_step.value, self._current_step.value, trigger.value,
                )
                return self._current_step

        raise self._invalid(trigger)

    def _invalid(self, trigger: BookingTrigger) -> InvalidTransitionError:
        valid = [t.value for t in self.get_valid_triggers()]
        return InvalidTransitionError(
            f"No valid transition from '{self._current_step.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[BookingTrigger]:
        """Return all triggers valid from the current step."""
        return [t.trigger for t in self.TRANSITIONS if t.from_step == self._current_step]

    def get_history(self) -> list[StepEntry]:
        """Return the step change history."""
        return list(self._history)

    def get_step_trace(self) -> list[str]:
        """Return ordered list of step names visited."""
        return [entry.step.value for entry in self._history]

    def is_terminal(self) -> bool:
        """Check if the booking has been committed."""
        return self._current_step == BookingStep.COMMITTED
