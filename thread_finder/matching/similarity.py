"""Bigram (Sorensen-Dice) string similarity."""

from collections import Counter


def compare_two_strings(first: str, second: str) -> float:
    """
    Return the Dice coefficient of the character bigrams of two strings.

    Whitespace is ignored. Identical strings score 1.0; strings shorter than
    two characters that are not identical score 0.0. Comparison is case
    sensitive, callers lowercase first.
    """
    first = "".join(first.split())
    second = "".join(second.split())

    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    first_bigrams = Counter(first[i:i + 2] for i in range(len(first) - 1))

    intersection = 0
    for i in range(len(second) - 1):
        bigram = second[i:i + 2]
        if first_bigrams[bigram] > 0:
            first_bigrams[bigram] -= 1
            intersection += 1

    return (2.0 * intersection) / (len(first) + len(second) - 2)
