"""Best-effort interpretation of the coach's formatted replies.

Replies are expected to follow the output format requested by the system
instruction: an explanation, a ``$$...$$`` LaTeX formula, a ``<math>`` MathML
block, a ``Description:`` line and, in voice mode, a trailing ``VOICE_OVER:``
narration block. Models do not always comply, so every section is optional
and anything that cannot be found is reported as missing rather than raising.
All functions only read forward from fixed markers, so they are safe to run
against a partially streamed reply.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

VOICE_OVER_MARKER = "VOICE_OVER:"
DESCRIPTION_LABEL = "Description:"

LATEX_PATTERN = re.compile(r"\$\$(.+?)\$\$", re.DOTALL)
MARKUP_PATTERN = re.compile(r"<math\b[^>]*>.*?</math>", re.DOTALL | re.IGNORECASE)
DESCRIPTION_PATTERN = re.compile(rf"{re.escape(DESCRIPTION_LABEL)}[ \t]*(.*)")
VOICE_OVER_PATTERN = re.compile(
    rf"^[ \t]*{re.escape(VOICE_OVER_MARKER)}", re.MULTILINE
)


@dataclass(frozen=True)
class ReplySections:
    """Structured view of a reply for display."""

    explanation: str
    latex: Optional[str] = None
    markup: Optional[str] = None
    description: Optional[str] = None
    narration: Optional[str] = None

    @property
    def has_formula(self) -> bool:
        return self.latex is not None or self.markup is not None


def extract_voice_over(text: str) -> Optional[str]:
    """Return the narration block of a reply, if any."""
    match = VOICE_OVER_PATTERN.search(text)
    if match is None:
        return None
    narration = text[match.end():].strip()
    return narration or None


def strip_voice_over(text: str) -> str:
    """Remove the narration block (marker line onward) from a reply."""
    match = VOICE_OVER_PATTERN.search(text)
    if match is None:
        return text
    return text[:match.start()].rstrip()


def split_reply(text: str) -> Tuple[str, Optional[str]]:
    """Split a reply into its display text and narration."""
    return strip_voice_over(text), extract_voice_over(text)


def extract_sections(display_text: str) -> ReplySections:
    """Find the labelled sections of a reply that has no narration block."""
    latex_match = LATEX_PATTERN.search(display_text)
    markup_match = MARKUP_PATTERN.search(display_text)
    description_match = DESCRIPTION_PATTERN.search(display_text)

    matches = [m for m in (latex_match, markup_match, description_match) if m]
    if matches:
        first_start = min(m.start() for m in matches)
        explanation = display_text[:first_start].strip()
    else:
        explanation = display_text.strip()

    description = None
    if description_match:
        description = description_match.group(1).strip() or None

    return ReplySections(
        explanation=explanation,
        latex=latex_match.group(1).strip() if latex_match else None,
        markup=markup_match.group(0).strip() if markup_match else None,
        description=description,
    )


def parse_reply(text: str) -> ReplySections:
    """Interpret a full (or partial) reply for display and narration."""
    display_text, narration = split_reply(text)
    sections = extract_sections(display_text)
    return ReplySections(
        explanation=sections.explanation,
        latex=sections.latex,
        markup=sections.markup,
        description=sections.description,
        narration=narration,
    )
