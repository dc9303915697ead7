"""Label formatting for small blobs."""

VOWELS = "aeiou"


def hyphenate_text(text: str, max_word_length: int = 8) -> str:
    """Insert hyphens into long words so they wrap inside a narrow blob.

    A word longer than max_word_length is split after a vowel followed by
    a consonant once the current segment has at least 4 characters, or
    unconditionally at 6 characters. No split happens within the last
    3 characters of a word.
    """
    return " ".join(_hyphenate_word(word, max_word_length) for word in text.split(" "))


def _hyphenate_word(word: str, max_word_length: int) -> str:
    if len(word) <= max_word_length:
        return word

    parts: list[str] = []
    segment = ""
    for i, char in enumerate(word):
        segment += char
        current = char.lower()
        following = word[i + 1].lower() if i + 1 < len(word) else ""
        vowel_then_consonant = current in VOWELS and bool(following) and following not in VOWELS

        if (
            len(segment) >= 4
            and i < len(word) - 3
            and (vowel_then_consonant or len(segment) >= 6)
        ):
            parts.append(segment + "-")
            segment = ""

    if segment:
        parts.append(segment)
    return "".join(parts)


def truncate(text: str, max_len: int) -> str:
    """Truncate text with ellipsis."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 1] + "…"
