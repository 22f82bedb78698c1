from typing import Optional
import re


def is_blank(value: Optional[str]) -> bool:
    """True for None, empty or whitespace-only values"""
    return value is None or not str(value).strip()


def levenshtein_distance(s1: str, s2: str) -> int:
    """Classic edit distance (insert, delete, substitute; unit cost each)"""
    if s1 == s2:
        return 0
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    # Only the previous row of the DP table is needed
    prev = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        curr = [i]
        for j, c2 in enumerate(s2, start=1):
            cost = 0 if c1 == c2 else 1
            curr.append(min(curr[j - 1] + 1, prev[j] + 1, prev[j - 1] + cost))
        prev = curr
    return prev[-1]


def string_similarity(s1: Optional[str], s2: Optional[str]) -> float:
    """Case-insensitive similarity in [0, 1] from normalized edit distance"""
    if not s1 or not s2:
        return 0.0

    s1, s2 = s1.lower(), s2.lower()
    if s1 == s2:
        return 1.0

    max_len = max(len(s1), len(s2))
    return 1.0 - (levenshtein_distance(s1, s2) / max_len)


def normalize_whitespace(text: Optional[str]) -> str:
    """Normalize all whitespace to single spaces"""
    if not text:
        return ""
    return " ".join(text.split())


def contains_ignore_case(value: Optional[str], fragment: str) -> bool:
    """Substring test used by the search filters"""
    if value is None:
        return False
    return fragment.lower() in value.lower()


def clean_string(text: str, keep_chars: str = "") -> str:
    """Remove all non-alphanumeric characters except those specified"""
    if not text:
        return ""
    pattern = fr'[^\w\s{re.escape(keep_chars)}]'
    return re.sub(pattern, '', text).strip()
