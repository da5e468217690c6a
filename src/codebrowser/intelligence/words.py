"""Token extraction from a single source line."""

from __future__ import annotations


def is_word_char(ch: str) -> bool:
    """Unicode letter, Unicode decimal digit, or underscore."""
    return ch == "_" or ch.isalpha() or ch.isdecimal()


def word_at(line_text: str, column: int) -> str | None:
    """
    Return the identifier-like token under a cursor, or None.

    column is a 0-based code point index. If the character at column is
    not a word character but the one before it is, the cursor is treated
    as sitting just past the end of that token. column == len(line_text)
    is accepted for the same reason.

    Examples::

        word_at("abc def", 3)  # "abc"
        word_at("abc", 3)      # "abc"
        word_at(" x", 0)       # None
    """
    if column < 0 or column > len(line_text):
        return None

    pos = column
    if pos == len(line_text) or not is_word_char(line_text[pos]):
        if pos > 0 and is_word_char(line_text[pos - 1]):
            pos -= 1
        else:
            return None

    start = pos
    while start > 0 and is_word_char(line_text[start - 1]):
        start -= 1
    end = pos + 1
    while end < len(line_text) and is_word_char(line_text[end]):
        end += 1
    return line_text[start:end]
