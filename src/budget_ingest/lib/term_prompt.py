"""Terminal prompt for description metadata (prompt_toolkit-based).

Enter submits the typed line. Ctrl+S skips the current description and
Ctrl+A skips all remaining descriptions. Ctrl+C is not handled here.
"""

from __future__ import annotations

from prompt_toolkit import PromptSession
from prompt_toolkit.key_binding import KeyBindings

from .metadata import AbortAll, PromptOutcome, SkipOne, Text

INSTRUCTIONS = (
    "Requesting information on descriptions that have not been seen before.\n"
    "Press CTRL + S to skip the current description, "
    "and CTRL + A to skip all the remaining descriptions."
)


def _key_bindings() -> KeyBindings:
    kb = KeyBindings()

    @kb.add("c-s", eager=True)
    def _(event) -> None:
        event.app.exit(result=SkipOne())

    @kb.add("c-a", eager=True)
    def _(event) -> None:
        event.app.exit(result=AbortAll())

    return kb


class TerminalPrompt:
    """Callable prompt collaborator for ``collect_metadata``."""

    def __init__(self, session: PromptSession | None = None) -> None:
        kb = _key_bindings()
        if session is None:
            self._session: PromptSession = PromptSession(key_bindings=kb)
        else:
            self._session = PromptSession(
                input=getattr(session, "input", None),
                output=getattr(session, "output", None),
                key_bindings=kb,
            )

    def __call__(self, question: str) -> PromptOutcome:
        result = self._session.prompt(f"{question}\n> ")
        if isinstance(result, (SkipOne, AbortAll)):
            return result
        return Text(result)
