"""Transcript data model: an append-only sequence of chat turns."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional


class Role(str, Enum):
    """Author of a turn."""

    USER = "user"
    MODEL = "model"


@dataclass
class Turn:
    """A single message in the transcript."""

    role: Role
    content: str

    @property
    def is_model(self) -> bool:
        return self.role is Role.MODEL


class TranscriptError(RuntimeError):
    """Raised when a transcript update violates its invariants."""


class Transcript:
    """Chronological list of turns.

    Turns are only ever appended. The single exception is the trailing model
    turn, whose content is replaced while a reply streams in.
    """

    SPEAKERS = {Role.USER: "You", Role.MODEL: "Coach"}

    def __init__(self, turns: Optional[Iterable[Turn]] = None):
        self._turns: List[Turn] = list(turns or [])

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self._turns)

    def __getitem__(self, index: int) -> Turn:
        return self._turns[index]

    @property
    def last(self) -> Optional[Turn]:
        """The most recent turn, or None for an empty transcript."""
        return self._turns[-1] if self._turns else None

    @property
    def turns(self) -> List[Turn]:
        """A copy of the turns, oldest first."""
        return list(self._turns)

    def append(self, turn: Turn) -> Turn:
        self._turns.append(turn)
        return turn

    def append_user(self, content: str) -> Turn:
        return self.append(Turn(Role.USER, content))

    def append_model(self, content: str = "") -> Turn:
        return self.append(Turn(Role.MODEL, content))

    def replace_last(self, content: str) -> Turn:
        """Replace the content of the trailing model turn.

        Args:
            content: The complete new content (not a delta)

        Returns:
            The updated turn

        Raises:
            TranscriptError: If the transcript is empty or the last turn
                was authored by the user
        """
        last = self.last
        if last is None:
            raise TranscriptError("Cannot replace the last turn of an empty transcript")
        if not last.is_model:
            raise TranscriptError("Only a trailing model turn can be replaced")
        last.content = content
        return last

    def reset(self, turns: Optional[Iterable[Turn]] = None) -> None:
        """Start over with the given turns (used when a new session is seeded)."""
        self._turns = list(turns or [])

    def as_text(self) -> str:
        """Render the transcript as plain text for copying or export."""
        return "\n\n".join(
            f"{self.SPEAKERS[turn.role]}: {turn.content}" for turn in self._turns
        )
