"""
Finite state machine for the booking wizard.

Every screen of the wizard is a state and every user action or commit
outcome is a trigger. Transitions are declared up front, so a client can
only reach the recap with a complete selection and only reaches
``confirmed`` through a successful commit.

Usage:
    wizard = BookingWizard()
    wizard.transition(WizardTrigger.FORMULA_SELECTED)
    assert wizard.current_state == WizardState.DATE_SELECTION
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from pawbook.schemas.booking_schema import BookingError, BookingResult
from pawbook.scheduling.multi_unit import MultiUnitSelection

logger = logging.getLogger(__name__)


class WizardState(str, Enum):
    """Screens of the booking wizard."""
    FORMULA_SELECTION = "formula_selection"
    DATE_SELECTION = "date_selection"
    TIME_SELECTION = "time_selection"
    SESSION_SELECTION = "session_selection"
    OPTIONS = "options"
    RECAP = "recap"
    COMMITTING = "committing"
    CONFIRMED = "confirmed"
    ABANDONED = "abandoned"


class WizardTrigger(str, Enum):
    """User actions and commit outcomes."""
    FORMULA_SELECTED = "formula_selected"
    DATES_SELECTED = "dates_selected"
    SESSIONS_REQUIRED = "sessions_required"
    TIME_SELECTED = "time_selected"
    DATE_CHANGED = "date_changed"
    SESSIONS_COMPLETE = "sessions_complete"
    OPTIONS_CONFIRMED = "options_confirmed"
    SUBMIT = "submit"
    EDIT_DATES = "edit_dates"
    COMMIT_SUCCEEDED = "commit_succeeded"
    SLOT_TAKEN = "slot_taken"
    COMMIT_TRANSPORT_FAILED = "commit_transport_failed"
    ABANDON = "abandon"


TERMINAL_STATES = frozenset({WizardState.CONFIRMED, WizardState.ABANDONED})


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: WizardState
    to_state: WizardState
    trigger: WizardTrigger
    guard: Optional[Callable[["BookingWizard"], bool]] = None


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: WizardState
    entered_at: datetime
    trigger: Optional[WizardTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


def _sessions_complete(wizard: "BookingWizard") -> bool:
    return wizard.selection is not None and wizard.selection.is_complete()


class BookingWizard:
    """
    Deterministic state machine driving one booking attempt.

    ``selection`` holds the multi-session or collective selection while the
    client is on the session screen; the recap can only be reached from
    there once it is complete. ``last_error`` keeps the most recent commit
    failure message verbatim for display.
    """

    TRANSITIONS: list[Transition] = [
        Transition(WizardState.FORMULA_SELECTION, WizardState.DATE_SELECTION,
                   WizardTrigger.FORMULA_SELECTED),

        # --- Dates ---
        Transition(WizardState.DATE_SELECTION, WizardState.TIME_SELECTION,
                   WizardTrigger.DATES_SELECTED),
        Transition(WizardState.DATE_SELECTION, WizardState.SESSION_SELECTION,
                   WizardTrigger.SESSIONS_REQUIRED),

        # --- Times and sessions ---
        Transition(WizardState.TIME_SELECTION, WizardState.OPTIONS,
                   WizardTrigger.TIME_SELECTED),
        Transition(WizardState.TIME_SELECTION, WizardState.DATE_SELECTION,
                   WizardTrigger.DATE_CHANGED),
        Transition(WizardState.SESSION_SELECTION, WizardState.OPTIONS,
                   WizardTrigger.SESSIONS_COMPLETE, guard=_sessions_complete),
        Transition(WizardState.SESSION_SELECTION, WizardState.DATE_SELECTION,
                   WizardTrigger.DATE_CHANGED),

        # --- Options and recap ---
        Transition(WizardState.OPTIONS, WizardState.RECAP,
                   WizardTrigger.OPTIONS_CONFIRMED),
        Transition(WizardState.RECAP, WizardState.COMMITTING,
                   WizardTrigger.SUBMIT),
        Transition(WizardState.RECAP, WizardState.DATE_SELECTION,
                   WizardTrigger.EDIT_DATES),

        # --- Commit outcome ---
        Transition(WizardState.COMMITTING, WizardState.CONFIRMED,
                   WizardTrigger.COMMIT_SUCCEEDED),
        Transition(WizardState.COMMITTING, WizardState.DATE_SELECTION,
                   WizardTrigger.SLOT_TAKEN),
        Transition(WizardState.COMMITTING, WizardState.RECAP,
                   WizardTrigger.COMMIT_TRANSPORT_FAILED),
    ] + [
        Transition(state, WizardState.ABANDONED, WizardTrigger.ABANDON)
        for state in WizardState
        if state not in TERMINAL_STATES
    ]

    def __init__(self) -> None:
        self._current_state = WizardState.FORMULA_SELECTION
        self._history: list[StateEntry] = [
            StateEntry(state=WizardState.FORMULA_SELECTION, entered_at=datetime.now(timezone.utc))
        ]
        self.selection: Optional[MultiUnitSelection] = None
        self.booking_id: Optional[str] = None
        self.last_error: Optional[str] = None

    @property
    def current_state(self) -> WizardState:
        return self._current_state

    def transition(self, trigger: WizardTrigger) -> WizardState:
        """
        Execute a state transition.

        Raises:
            InvalidTransitionError: If no valid transition exists, or its
                guard rejects the current selection.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                if t.guard is not None and not t.guard(self):
                    continue

                old_state = self._current_state
                self._current_state = t.to_state
                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))
                logger.debug(
                    "Wizard transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def apply_commit_result(self, result: BookingResult) -> WizardState:
        """Route a create-booking outcome to the matching trigger."""
        if result.success:
            self.booking_id = result.booking_id
            self.last_error = None
            return self.transition(WizardTrigger.COMMIT_SUCCEEDED)
        self.last_error = result.message
        if result.error == BookingError.SLOT_NO_LONGER_AVAILABLE:
            self.selection = None
            return self.transition(WizardTrigger.SLOT_TAKEN)
        return self.transition(WizardTrigger.COMMIT_TRANSPORT_FAILED)

    def commit_failed(self, message: str) -> WizardState:
        """The create-booking call itself failed; keep the message for the recap."""
        self.last_error = message
        return self.transition(WizardTrigger.COMMIT_TRANSPORT_FAILED)

    def get_valid_triggers(self) -> list[WizardTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        return self._current_state in TERMINAL_STATES
