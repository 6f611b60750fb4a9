"""
Pattern sets used by the splitter and the analyzer.

Severity term lists are kept base64-encoded so the raw vocabulary does not
appear in the source tree; they are decoded once at import time.
"""

from __future__ import annotations

import base64
import re
from typing import Dict, List, Pattern, Tuple

from .models import SeverityLevel

_MILD_B64 = (
    "KOWwv3zlkbvlkJ985aWX5byEfOW/q+aEn3zmrLLmnJt85oSP5Lmx5oOF6L+3fOa9rueDrXzm"
    "sZfmtKXmtKV85rm/54OtfOm7j+iFu3zpu4/mu4vmu4t85rm/5ryJ5ryJfOaZtuiOueeahOa2"
    "suS9k3znvKDnu7V85aiH576efOWQnuWQkHznmb3mtYp85Y+j5rC0fOa5v+WQu3zllL7mtrJ8"
    "5aSn6IW/5YaF5L6nfOWWmOaBr3zlqIfllph85L2O5ZCffOi/t+emu3zlkbzlkLguezAsM33m"
    "gKXkv4N86Lqr5L2TLnswLDN95Y+R54OrfOWPkeeDrXzohb/ova985ZCO5YWlfOWJjeWFpXzo"
    "iJR85b+D6LezLnswLDN95Yqg6YCffOWUh+eToy57MCwzfeW+ruW8oHzouqvkvZMuezAsM33l"
    "j5Hova986L2v57u157u1fOWoh+WQn3zovbvpoqR85bCP5YWE5byffOWGheijpHzmiprmkbh8"
    "5oCl5L+DLnswLDMwfemipOaKlik="
)

_MODERATE_B64 = (
    "KOi1pOijuHzmtqbmu5F85YGa54ixfOe0py57MCw2feeDrXzng60uezAsNn3ntKd85aS55b6X"
    "LnswLDN957SnfOaKvemAgXzmir3liqh85L2gLnswLDV956Gs5LqGfOaJk+W8gC57MCwxMH3o"
    "hb985oqs6LW3LnswLDV96IW/fOWIhuW8gC57MCwzfeS7lueahOiFv3zoo6QuezEsMTB96Kej"
    "5byAfOS4iy57MCw4feijpOWtkHzpobYuezAsM33ov5vljrt85pGH5Yqo552A6IWwfOiHgOmD"
    "qHzoh4Dnk6N854ix5oqafOS6suWQu3zmt7HlkLt86L275ZKsfOaPieaNj3zlj4zohb/poqTm"
    "ipZ86Lqr5L2T5oq95pCQfOWQruWQuHznvKDkvY9856Oo6LmtfOiCjOiCpC57MCwzfeebuOS6"
    "snzooaPooasuezAsNn3op6N85pyNLnswLDZ95ruR6JC9fOiEseWIsC57MCw2feiFsHzkuIro"
    "oaMuezAsNn3mjoDotbd86KOk5a2QLnswLDZ96KSq5YiwfOWVquWVqnzmjIflsJYuezAsOH3m"
    "uLjotbB86IWw6IKi54uC5omtfOWWt+a2jHzmuqLmu6F854GM5ruhfOiIjOWwli57MCw4feiI"
    "lOi/h3zovbvovbsuezAsNn3llYPlkqx86IW/LnswLDZ957yg5LiKfOi6q+S9ky57MCw2fee0"
    "p+i0tCk="
)

_SEVERE_B64 = (
    "KOmrmOa9rnzmj5LlhaV85o+S5ruhfOWkqua3seS6hnzmj5Lov5vmnaV85rexLnswLDN95oy6"
    "5YWlfOaKveaPkuedgHzmj5LlnKguezAsOH3ph4zpnaJ85LiK5LiL5aWX5byEfOmhtuW8hHzm"
    "k43lvIDkuoZ85pON5LqG6L+b5Y67fOaOsOW8gC57MCw1feiFv3zot6rotrR85omT5qGpfOii"
    "q+aPkig/IeWIgCl85Lqk6YWNfOWwhOS6hnzopoHlsITkuoZ85oOz5bCEfOWwhOS6hui/m+WO"
    "u3zlsITkuoblh7rmnaV85oi05aWXfOaJqeW8oHzmj5Llh7rmsLR85rWq5rC0fOmqmuawtHzl"
    "sYHnnLx86I+K6IqxfOaTjeaIkXzmkpLlsL985omL5oyHLnswLDEwfeS9k+WGheaOoue0onzm"
    "uKnng63nmoTnlKzpgZN855Sf5q6W6IWUfOeZvea1ii57MCw1fea2suS9k3znp4HlpIR857K+"
    "5rC0fOeMm+aPknzni6Dmj5J85aSn5Yqb5oq96YCBfOW/q+mAn+aKveaPknznvJPmhaLnoJTn"
    "o6h85pW05qC55rKh5YWlfOmqkeS5mHzkuIrkuIvotbfkvI985YmN5ZCO6IC45YqofOiFv+mr"
    "mOS4vnzouqvkvZPlr7nmkp586IKJ5L2T5ouN5omTfOWSleWVvnzlmZfmu4t86IKJ5Ye75aOw"
    "fOa5v+a7kXzmva7llrd85rer5Y+rfOa1quWPq3zpqprlj6sp"
)

# {n.m} and full-width commas inside quantifiers are tolerated by some
# upstream sources; normalise them to {n,m} before compiling.
_QUANTIFIER_DOT_FIX = re.compile(r"\{(\d+)\.(\d+)\}")

DEFAULT_AD_PATTERNS: Tuple[str, ...] = (
    "公众号",
    "作品来自互联网",
    "版权归作者",
    "-{10,}",
)

DEFAULT_NOISE_PATTERN = r"[，、｀\-| @#￥%…&（）—]"


def decode_pattern(encoded: str) -> str:
    decoded = base64.b64decode(encoded).decode("utf-8")
    decoded = _QUANTIFIER_DOT_FIX.sub(r"{\1,\2}", decoded)
    return decoded.replace("，", ",")


DEFAULT_SEVERITY_PATTERNS: Dict[SeverityLevel, Tuple[str, ...]] = {
    SeverityLevel.MILD: (decode_pattern(_MILD_B64),),
    SeverityLevel.MODERATE: (decode_pattern(_MODERATE_B64),),
    SeverityLevel.SEVERE: (decode_pattern(_SEVERE_B64),),
}


def _compile_all(*regexes: str) -> List[Pattern[str]]:
    return [re.compile(regex) for regex in regexes]


# Main heading patterns. Only the most frequent one in a document is used
# for the final split.
MAIN_HEADING_PATTERNS: List[Pattern[str]] = _compile_all(
    r"#+\s*(.*)",
    r"(?:第 ?[\d〇零一二两三四五六七八九十百千]{0,5}\s?章)\s{0,2}(.{0,35})",
    r"(?i)chapter ?(?:\d{1,4}|[ivxlcdm]{1,7})(?:[ .:\-]{1,3}(.{0,40}))?",
    r"\d{1,3}.{0,3}",
    r"\d{1,3}-.{1,10}",
    r"\d{1,3}",
    r" {0,2}☆、.{1,10}",
    r"\d{1,3}\D{1,15}",
    r"[零一二两三四五六七八九十百]{1,3}",
)

# Side-story headings, always split on in addition to the main pattern.
EXTRA_HEADING_PATTERNS: List[Pattern[str]] = _compile_all(
    r"(番外(?!完)[\d〇零一二两三四五六七八九十百]{1,2})",
    r"(番外(?!完)[\d〇零一二两三四五六七八九十百]{1,2}.{1,15})",
    r"(番外(?!完)).{0,10}",
    r"《.*番外.*》",
)

# Lines ending like a sentence are never headings.
EXCLUDE_HEADING_PATTERNS: List[Pattern[str]] = _compile_all(r"[。！？!?]$")


def split_patterns(main_index: int) -> List[Pattern[str]]:
    """Patterns used for the final split given the winning main pattern index."""
    if main_index < 0 or main_index >= len(MAIN_HEADING_PATTERNS):
        return list(EXTRA_HEADING_PATTERNS)
    return [MAIN_HEADING_PATTERNS[main_index]] + EXTRA_HEADING_PATTERNS


def heading_title(line: str) -> str:
    if line.startswith("#"):
        return line.lstrip("#").strip()
    return line
