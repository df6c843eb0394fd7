"""Three-step system PIN change dialog.

The wizard walks ``verify -> new -> confirm`` and never goes back; closing it
(cancel or success) always returns to ``verify`` with every field cleared.
When secondary caretaker accounts exist the system PIN is managed through
caretaker authentication instead, so every step is refused with the same
advisory message.

Validation problems are reported through ``error`` as inline text. Nothing
in here raises for bad input.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Optional

VERIFY = "verify"
NEW = "new"
CONFIRM = "confirm"
STEPS = (VERIFY, NEW, CONFIRM)

CARETAKER_ADVISORY = (
    "System PIN changes are disabled when caretakers exist. "
    "Use caretaker authentication instead."
)
INCORRECT_PIN = "Incorrect PIN"
PIN_TOO_SHORT = "PIN must be at least {min} digits"
PIN_TOO_LONG = "PIN cannot be longer than {max} digits"
PIN_MISMATCH = "PINs do not match"

STEP_TITLES = {
    VERIFY: ("Verify Current PIN", "Please enter your current PIN to continue", "Verify"),
    NEW: ("Enter New PIN", "Enter a new PIN between {min}-{max} digits", "Next"),
    CONFIRM: ("Confirm New PIN", "Enter your new PIN again to confirm", "Change PIN"),
}

_NON_DIGITS = re.compile(r"\D")


def digits_only(value: str | None) -> str:
    return _NON_DIGITS.sub("", value or "")


class PinChangeWizard:
    def __init__(
        self,
        current_pin: str,
        on_pin_change: Optional[Callable[[str], Any]] = None,
        on_close: Optional[Callable[[], Any]] = None,
        *,
        min_length: int = 6,
        max_length: int = 10,
    ) -> None:
        self.current_pin = current_pin
        self.on_pin_change = on_pin_change
        self.on_close = on_close
        self.min_length = min_length
        self.max_length = max_length
        self.step = VERIFY
        self.verify_pin = ""
        self.new_pin = ""
        self.confirm_pin = ""
        self.error = ""
        self.has_caretakers = False
        self.loading = True

    # ---- opening and guard

    def open(self, has_caretakers: bool) -> None:
        """Record the caretaker check made when the dialog opened."""
        self.loading = False
        self.has_caretakers = bool(has_caretakers)
        if self.has_caretakers:
            self.error = CARETAKER_ADVISORY

    def _blocked(self) -> bool:
        if self.has_caretakers:
            self.error = CARETAKER_ADVISORY
            return True
        return False

    @property
    def inputs_disabled(self) -> bool:
        if self.step == VERIFY:
            return self.has_caretakers or self.loading
        return self.has_caretakers

    @property
    def submit_disabled(self) -> bool:
        return self.has_caretakers or self.loading

    # ---- typing

    def _typed(self) -> None:
        if not self.has_caretakers:
            self.error = ""

    def enter_verify(self, value: str) -> None:
        self.verify_pin = digits_only(value)
        self._typed()

    def enter_new(self, value: str) -> None:
        digits = digits_only(value)
        if len(digits) <= self.max_length:
            self.new_pin = digits
            self._typed()

    def enter_confirm(self, value: str) -> None:
        digits = digits_only(value)
        if len(digits) <= self.max_length:
            self.confirm_pin = digits
            self._typed()

    def enter(self, value: str) -> None:
        """Feed ``value`` into the input shown for the current step."""
        if self.step == VERIFY:
            self.enter_verify(value)
        elif self.step == NEW:
            self.enter_new(value)
        else:
            self.enter_confirm(value)

    # ---- transitions

    def submit_verify(self) -> bool:
        if self._blocked():
            return False
        if self.verify_pin == self.current_pin:
            self.step = NEW
            self.error = ""
            return True
        self.error = INCORRECT_PIN
        self.verify_pin = ""
        return False

    def submit_new(self) -> bool:
        if self._blocked():
            return False
        if len(self.new_pin) < self.min_length:
            self.error = PIN_TOO_SHORT.format(min=self.min_length)
            return False
        if len(self.new_pin) > self.max_length:
            self.error = PIN_TOO_LONG.format(max=self.max_length)
            return False
        self.step = CONFIRM
        self.error = ""
        return True

    def submit_confirm(self) -> bool:
        if self._blocked():
            return False
        if self.new_pin == self.confirm_pin:
            new_pin = self.new_pin
            if self.on_pin_change is not None:
                self.on_pin_change(new_pin)
            self.close()
            return True
        self.error = PIN_MISMATCH
        self.confirm_pin = ""
        return False

    def submit(self) -> bool:
        """Primary button: run the transition for the current step."""
        if self.step == VERIFY:
            return self.submit_verify()
        if self.step == NEW:
            return self.submit_new()
        return self.submit_confirm()

    def close(self) -> None:
        self.step = VERIFY
        self.verify_pin = ""
        self.new_pin = ""
        self.confirm_pin = ""
        self.error = ""
        if self.on_close is not None:
            self.on_close()

    # ---- presentation

    @property
    def title(self) -> str:
        return STEP_TITLES[self.step][0]

    @property
    def description(self) -> str:
        return STEP_TITLES[self.step][1].format(min=self.min_length, max=self.max_length)

    @property
    def button_label(self) -> str:
        return STEP_TITLES[self.step][2]

    # ---- session round trip

    def to_state(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "verify_pin": self.verify_pin,
            "new_pin": self.new_pin,
            "confirm_pin": self.confirm_pin,
            "error": self.error,
            "has_caretakers": self.has_caretakers,
            "loading": self.loading,
        }

    @classmethod
    def from_state(
        cls,
        state: dict[str, Any] | None,
        current_pin: str,
        on_pin_change: Optional[Callable[[str], Any]] = None,
        on_close: Optional[Callable[[], Any]] = None,
        **limits: int,
    ) -> "PinChangeWizard":
        wizard = cls(current_pin, on_pin_change, on_close, **limits)
        if not state:
            return wizard
        step = state.get("step")
        wizard.step = step if step in STEPS else VERIFY
        wizard.verify_pin = digits_only(state.get("verify_pin"))
        wizard.new_pin = digits_only(state.get("new_pin"))
        wizard.confirm_pin = digits_only(state.get("confirm_pin"))
        wizard.error = str(state.get("error") or "")
        wizard.has_caretakers = bool(state.get("has_caretakers"))
        wizard.loading = bool(state.get("loading", False))
        return wizard
