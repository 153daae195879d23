"""Team reference table and the total surface-form normalisation function.

Canonical keys are ``1s``..``8s`` and ``Vets``; the whole club is the
``CLUB_TEAM_KEY`` sentinel. Fixtures in the graph store the display form
("1st XI"), which is what queries filter on.
"""

import re
from dataclasses import dataclass

CLUB_TEAM_KEY = "club"
VETS_TEAM_KEY = "Vets"
MAX_TEAM_NUMBER = 8


@dataclass(frozen=True)
class TeamReference:
    key: str
    display: str
    ordinal: int | None = None


def _ordinal_suffix(n: int) -> str:
    if 10 <= n % 100 <= 20:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")


TEAMS: tuple[TeamReference, ...] = tuple(
    TeamReference(key=f"{n}s", display=f"{n}{_ordinal_suffix(n)} XI", ordinal=n)
    for n in range(1, MAX_TEAM_NUMBER + 1)
) + (TeamReference(key=VETS_TEAM_KEY, display="Vets"),)

_TEAMS_BY_KEY = {team.key: team for team in TEAMS}

_SPELLED_ORDINALS = {
    "first": 1, "second": 2, "third": 3, "fourth": 4, "fifth": 5,
    "sixth": 6, "seventh": 7, "eighth": 8, "ninth": 9, "tenth": 10,
}
_SPELLED_PLURALS = {f"{word}s": n for word, n in _SPELLED_ORDINALS.items()}

_ORDINAL_WORDS = "|".join(sorted(_SPELLED_ORDINALS, key=len, reverse=True))
# "seconds" is only a team after "the" or "for" ("in seconds" is time)
_PLURAL_WORDS = "|".join(
    sorted((w for w in _SPELLED_PLURALS if w != "seconds"), key=len, reverse=True)
)

# Superset family of team mentions. Any numeral is captured so that the
# resolver can reject numbers outside 1..8 instead of silently ignoring them.
TEAM_PATTERN = re.compile(
    r"\b(?:"
    r"\d{1,2}(?:st|nd|rd|th)\s+(?:xi|team)"
    r"|\d{1,2}(?:st|nd|rd|th)s?"
    r"|\d{1,2}s"
    r"|(?:" + _ORDINAL_WORDS + r")\s+(?:xi|team)"
    r"|(?:" + _PLURAL_WORDS + r")"
    r"|(?:(?<=the\s)|(?<=for\s))seconds"
    r"|vets|veterans"
    r")\b",
    re.IGNORECASE,
)

_NUMERIC_FORM = re.compile(r"^(\d{1,2})(?:st|nd|rd|th)?s?$")
_TRAILING_NOUN = re.compile(r"\s+(?:xi|team|teams|side)$")


def normalize_team(surface: str) -> str | None:
    """Map any accepted team surface form to its canonical key.

    Returns ``CLUB_TEAM_KEY`` for whole-club phrasing and ``None`` when the
    surface names a team that does not exist (e.g. "9s", "tenth team").
    """
    text = " ".join(surface.lower().split())
    if text.startswith("the "):
        text = text[4:]
    text = _TRAILING_NOUN.sub("", text)

    if text in ("vets", "veterans", "vet"):
        return VETS_TEAM_KEY
    if text in ("club", "whole club", "all teams"):
        return CLUB_TEAM_KEY
    if text in _TEAMS_BY_KEY:
        return text

    number: int | None = None
    match = _NUMERIC_FORM.match(text)
    if match:
        number = int(match.group(1))
    elif text in _SPELLED_ORDINALS:
        number = _SPELLED_ORDINALS[text]
    elif text in _SPELLED_PLURALS:
        number = _SPELLED_PLURALS[text]

    if number is not None and 1 <= number <= MAX_TEAM_NUMBER:
        return f"{number}s"
    return None


def team_display(key: str) -> str:
    """Display form stored on Fixture.team, e.g. ``1s`` → ``1st XI``."""
    team = _TEAMS_BY_KEY.get(key)
    if team is None:
        raise KeyError(f"unknown team key {key!r}")
    return team.display
