"""Sensitivity detectors.

Each detector both decides sensitivity (a search hit) and knows how to
redact (substitute every hit with the redaction token). Detectors run in a
fixed order; later detectors see the output of earlier ones.

Keyword detectors consume the keyword, the separator and the value that
follows, up to and including the next non-word character (or the end of the
text), so ``"password: hunter2"`` redacts in full. The card detector only
matches when the whole text is a card-shaped number; it is a structural
match, not a Luhn check. All patterns are case-sensitive.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .errors import describe_type, ensure

REDACTION_TOKEN = "############"

# keyword, separator run, value run, terminator
_VALUE_TAIL = r"\W*[\w\s]*(?:\W|$)"

_CARD_NUMBER = (
    r"\A(?:"
    r"4[0-9]{12}(?:[0-9]{3})?"  # Visa
    r"|[25][1-7][0-9]{14}"  # Mastercard
    r"|6(?:011|5[0-9][0-9])[0-9]{12}"  # Discover
    r"|3[47][0-9]{13}"  # Amex
    r"|3(?:0[0-5]|[68][0-9])[0-9]{11}"  # Diners Club
    r"|(?:2131|1800|35\d{3})\d{11}"  # JCB
    r")\Z"
)


@dataclass(frozen=True)
class Detector:
    name: str
    pattern: re.Pattern[str]

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None

    def redact(self, text: str, token: str = REDACTION_TOKEN) -> str:
        return self.pattern.sub(token, text)


class DetectorSet:
    """Ordered, immutable collection of detectors."""

    def __init__(self, detectors: Iterable[Detector], token: str = REDACTION_TOKEN) -> None:
        self._detectors: tuple[Detector, ...] = tuple(detectors)
        self._token = token

    def __iter__(self) -> Iterator[Detector]:
        return iter(self._detectors)

    def __len__(self) -> int:
        return len(self._detectors)

    @property
    def token(self) -> str:
        return self._token

    def is_sensitive(self, text: str) -> bool:
        ensure(
            isinstance(text, str),
            f"is_sensitive must receive a string, instead got {describe_type(text)}",
        )
        return any(detector.matches(text) for detector in self._detectors)

    def sanitize(self, text: str) -> str:
        ensure(
            isinstance(text, str),
            f"sanitize must receive a string, instead got {describe_type(text)}",
        )
        result = text
        for detector in self._detectors:
            result = detector.redact(result, self._token)
        return result


def keyword_detector(name: str, keyword: str) -> Detector:
    return Detector(name, re.compile(keyword + _VALUE_TAIL))


DEFAULT_DETECTORS = DetectorSet(
    [
        keyword_detector("api_key", r"api[_-]?key"),
        keyword_detector("password", r"passw(?:or)?d"),
        keyword_detector("user_id", r"user[_-]?id"),
        keyword_detector("authorization", r"auth(?:orization)?"),
        keyword_detector("access_token", r"access[_-]?token"),
        Detector("card_number", re.compile(_CARD_NUMBER)),
    ]
)


__all__ = ["REDACTION_TOKEN", "Detector", "DetectorSet", "DEFAULT_DETECTORS", "keyword_detector"]
