"""Script-range language detection.

A coarse heuristic, not a language-identification model: count Arabic-block
characters (U+0600–U+06FF) against ASCII Latin letters and return whichever
script has more. Ties, including empty text, resolve to English.
"""

from __future__ import annotations

import re

from quarry.models import LanguageResult

ARABIC = "ar"
ENGLISH = "en"

_ARABIC_RE = re.compile(r"[\u0600-\u06FF]")
_LATIN_RE = re.compile(r"[a-zA-Z]")


def detect(text: str) -> LanguageResult:
    arabic = len(_ARABIC_RE.findall(text))
    latin = len(_LATIN_RE.findall(text))
    return LanguageResult(primary=ARABIC if arabic > latin else ENGLISH)
