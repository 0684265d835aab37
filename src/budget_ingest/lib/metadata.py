"""Description metadata collection.

New canonical descriptions are shown to the user one at a time. Each gets
four questions; the answers become one ``DescriptionMetadata`` row. The user
can skip a description or abort the whole round from any question.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

from .logging_setup import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Text:
    """The user answered the question."""

    value: str


@dataclass(frozen=True)
class SkipOne:
    """Drop the current description and move to the next one."""


@dataclass(frozen=True)
class AbortAll:
    """Stop asking; keep what has been collected so far."""


PromptOutcome = Text | SkipOne | AbortAll
Prompt = Callable[[str], PromptOutcome]


@dataclass(frozen=True)
class DescriptionMetadata:
    description: str
    primary: str | None = None
    secondary: str | None = None
    tertiary: str | None = None
    additional: str | None = None
    recorded_at: datetime | None = None


QUESTIONS: tuple[str, ...] = (
    "Please provide primary information for description '{description}':",
    "Please provide secondary information if it exists:",
    "Please provide tertiary information if it exists:",
    "Please provide additional information if it exists:",
)


class _Abort(Exception):
    pass


def _ask(prompt: Prompt, question: str) -> str | None:
    """Return the answer, None to skip, or raise _Abort."""
    outcome = prompt(question)
    if isinstance(outcome, Text):
        return outcome.value
    if isinstance(outcome, SkipOne):
        return None
    if isinstance(outcome, AbortAll):
        raise _Abort
    raise TypeError(f"Prompt returned {outcome!r}, expected Text, SkipOne or AbortAll")


def collect_metadata(descriptions: Iterable[str], prompt: Prompt) -> list[DescriptionMetadata]:
    """Ask for metadata on each description.

    Returns one record per description that got all four answers. Skipped
    descriptions produce nothing; an abort returns the records finished so far.
    """
    collected: list[DescriptionMetadata] = []
    for description in descriptions:
        answers: list[str | None] = []
        try:
            for template in QUESTIONS:
                answer = _ask(prompt, template.format(description=description))
                if answer is None:
                    break
                # Blank answers are stored as NULL.
                answers.append(answer if answer.strip() else None)
        except _Abort:
            logger.info("Metadata collection aborted after %d description(s)", len(collected))
            break

        if len(answers) < len(QUESTIONS):
            logger.info("Skipped description %r", description)
            continue

        record = DescriptionMetadata(description, *answers)
        logger.info("Description for upload: %s", record)
        collected.append(record)

    return collected
