"""Classification of Chinese (CJK ideograph) characters in text."""

from hanzicard.domain.constants import CJK_RANGES


def is_chinese_character(char: str) -> bool:
    """True iff the first code point of ``char`` falls in a CJK ideograph range."""
    if not char:
        return False
    code = ord(char[0])
    return any(lo <= code <= hi for lo, hi in CJK_RANGES)


def chinese_characters(text: str) -> list[str]:
    """All Chinese characters in ``text``, duplicates kept, in order."""
    return [c for c in text if is_chinese_character(c)]


def unique_chinese_characters(text: str) -> list[str]:
    """Chinese characters in order of first occurrence."""
    return list(dict.fromkeys(chinese_characters(text)))


def normalize_cache_key(text: str) -> str:
    # Whitespace and punctuation differences map to the same key.
    return "".join(chinese_characters(text))
