"""Choice presenters: how a two-option ``choice`` task reaches a person.

A presenter only obtains the answer. Writing it to the variable store is
done by the engine inside the callback it hands to the presenter.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)

ChoiceCallback = Callable[[str], None]


class ChoicePresenter(ABC):
    """Presents exactly two options and reports the chosen value."""

    @abstractmethod
    def present(
        self,
        prompt: str,
        option_a_text: str,
        option_a_value: str,
        option_b_text: str,
        option_b_value: str,
        on_chosen: ChoiceCallback,
    ) -> None:
        """Show the prompt and eventually call ``on_chosen`` with one of the two option values.

        Calling back before returning lets the run continue immediately;
        returning first leaves the run waiting until the callback fires.
        """

    def withdraw(self) -> None:
        """Forget an unanswered choice because its run was cancelled."""


class ConsoleChoicePresenter(ChoicePresenter):
    """Text console presenter: type 1 or 2."""

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
    ):
        self.input_func = input_func
        self.output_func = output_func

    def present(self, prompt, option_a_text, option_a_value, option_b_text, option_b_value, on_chosen):
        self.output_func(f"[Choice] {prompt}")
        self.output_func(f"1) {option_a_text}")
        self.output_func(f"2) {option_b_text}")

        while True:
            answer = self.input_func("Select 1 or 2: ").strip()
            if answer == "1":
                on_chosen(option_a_value)
                return
            if answer == "2":
                on_chosen(option_b_value)
                return
            self.output_func("Invalid input. Please type 1 or 2.")


class ScriptedChoicePresenter(ChoicePresenter):
    """Answers choices from a fixed script of option numbers or values.

    Each answer is either ``"1"``/``"2"`` (pick that option) or an option
    value. Useful for demos and unattended runs.
    """

    def __init__(self, answers: Iterable[str]):
        self._answers = list(answers)
        self.presented: list[str] = []

    def present(self, prompt, option_a_text, option_a_value, option_b_text, option_b_value, on_chosen):
        self.presented.append(prompt)
        if not self._answers:
            raise RuntimeError(f"No scripted answer left for choice: {prompt}")

        answer = self._answers.pop(0)
        if answer == "1":
            answer = option_a_value
        elif answer == "2":
            answer = option_b_value
        logger.debug(f"Scripted answer for '{prompt}': {answer}")
        on_chosen(answer)


@dataclass
class ChoiceRequest:
    """A presented choice that has not been answered yet."""

    prompt: str
    option_a_text: str
    option_a_value: str
    option_b_text: str
    option_b_value: str
    on_chosen: ChoiceCallback = field(repr=False)
    created_at: datetime = field(default_factory=datetime.now)

    def options(self) -> list[dict[str, str]]:
        return [
            {"text": self.option_a_text, "value": self.option_a_value},
            {"text": self.option_b_text, "value": self.option_b_value},
        ]

    def to_dict(self) -> dict[str, object]:
        return {
            "prompt": self.prompt,
            "options": self.options(),
            "created_at": self.created_at.isoformat(),
        }


class DeferredChoicePresenter(ChoicePresenter):
    """Records the choice and returns at once, leaving the run waiting.

    The answer arrives later through :meth:`answer`, typically from a network
    or UI callback.
    """

    def __init__(self):
        self.pending: ChoiceRequest | None = None

    def present(self, prompt, option_a_text, option_a_value, option_b_text, option_b_value, on_chosen):
        self.pending = ChoiceRequest(
            prompt=prompt,
            option_a_text=option_a_text,
            option_a_value=option_a_value,
            option_b_text=option_b_text,
            option_b_value=option_b_value,
            on_chosen=on_chosen,
        )
        logger.debug(f"Choice deferred: {prompt}")

    def answer(self, value: str) -> None:
        """Deliver the answer to the pending choice.

        Accepts an option value, or ``"1"``/``"2"`` for the first/second option.

        Raises:
            RuntimeError: If no choice is pending
        """
        request = self.pending
        if request is None:
            raise RuntimeError("No choice is pending")

        if value == "1" and value not in (request.option_a_value, request.option_b_value):
            value = request.option_a_value
        elif value == "2" and value not in (request.option_a_value, request.option_b_value):
            value = request.option_b_value

        # Callback validates the value; keep the request pending if it rejects it
        request.on_chosen(value)
        self.pending = None

    def withdraw(self) -> None:
        if self.pending is not None:
            logger.debug(f"Choice withdrawn: {self.pending.prompt}")
        self.pending = None
