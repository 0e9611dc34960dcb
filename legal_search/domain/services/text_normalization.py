"""Query tokenisation for lexical (sparse) retrieval.

Arabic legal text is folded the way the ingestion pipeline folds it before
computing term weights: diacritics and tatweel removed, alef/yaa/taa-marbuta
variants unified, Arabic-Indic digits mapped to ASCII.
"""

from __future__ import annotations

import re
import unicodedata

_DIACRITICS = re.compile(r"[\u0610-\u061A\u064B-\u065F\u0670\u06D6-\u06ED]")
_TATWEEL = "\u0640"
_FOLD = str.maketrans(
    {
        "آ": "ا",  # alef with madda
        "أ": "ا",  # alef with hamza above
        "إ": "ا",  # alef with hamza below
        "ٱ": "ا",  # alef wasla
        "ى": "ي",  # alef maksura -> yaa
        "ة": "ه",  # taa marbuta -> haa
        **{chr(0x0660 + d): str(d) for d in range(10)},
        **{chr(0x06F0 + d): str(d) for d in range(10)},
    }
)
_TOKEN = re.compile(r"\w+", re.UNICODE)

def normalize(text: str) -> str:
    text = unicodedata.normalize("NFKC", text)
    text = _DIACRITICS.sub("", text).replace(_TATWEEL, "")
    return text.translate(_FOLD).casefold()


# Particles that carry no lexical signal in queries. Stored folded, since
# tokens are compared after normalize().
ARABIC_STOPWORDS: frozenset[str] = frozenset(
    normalize(word)
    for word in (
        "في",
        "من",
        "على",
        "إلى",
        "عن",
        "مع",
        "أو",
        "أن",
        "ما",
        "هل",
        "هو",
        "هي",
        "التي",
        "الذي",
        "ذلك",
        "هذا",
        "هذه",
        "تلك",
        "كان",
        "قد",
        "لا",
        "ثم",
        "بين",
        "كل",
        "عند",
    )
)


def tokenize(text: str, stopwords: frozenset[str] = ARABIC_STOPWORDS) -> list[str]:
    """Normalized tokens in order, stopwords and single characters dropped."""
    return [
        tok for tok in _TOKEN.findall(normalize(text)) if len(tok) > 1 and tok not in stopwords
    ]
