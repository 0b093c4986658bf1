"""Reading-time estimate for post bodies."""

import math

WORDS_PER_MINUTE = 200


def count_words(body: str) -> int:
    return len(body.split())


def calculate_reading_time(body: str) -> int:
    """
    Minutes needed to read `body` at WORDS_PER_MINUTE, rounded up.

    Called by PostService on create and whenever an update changes the body.

    >>> calculate_reading_time("word " * 250)
    2
    """
    return math.ceil(count_words(body) / WORDS_PER_MINUTE)
