"""
Parsing of raw suggestion text returned by the chat-completion service.

The service is asked to answer with the alternative on the first line and
the explanation on the following line(s), e.g.::

    Oat milk

    Because it has less sugar.
"""

from dataclasses import dataclass

from .models import Suggestion


@dataclass(frozen=True)
class ParsedSuggestion:
    """Structured form of a raw suggestion blob."""

    alternative: str | None
    reason: str = ""

    def to_suggestion(self) -> Suggestion | None:
        """Return a Suggestion, or None when no alternative was produced."""
        if not self.alternative:
            return None
        return Suggestion(alternative=self.alternative, reason=self.reason)


def parse_suggestion(text: str | None) -> ParsedSuggestion:
    """
    Split a suggestion blob into (alternative, reason).

    Blank lines are dropped. The first remaining line is the alternative and
    the rest are joined with single spaces to form the reason. Never raises;
    input with no non-blank lines yields ``alternative=None``.
    """
    if not text:
        return ParsedSuggestion(alternative=None)

    # Only "\n" separates lines; form feeds and the like stay inside a line
    lines = [line.strip() for line in text.split("\n")]
    lines = [line for line in lines if line]
    if not lines:
        return ParsedSuggestion(alternative=None)

    alternative = lines[0]
    reason = " ".join(lines[1:])
    return ParsedSuggestion(alternative=alternative, reason=reason)
