"""ЕИК (Bulgarian Unified Identification Code) checksum validation.

A 9-digit code carries a check digit over its first 8 digits. A 13-digit code
is a valid 9-digit code followed by 4 more digits, the last of which checks
digits 9..12. Both use modulo 11 with a second weight set when the first
yields 10, and 0 when the second does too.
"""

from __future__ import annotations

_WEIGHTS_9 = ((1, 2, 3, 4, 5, 6, 7, 8), (3, 4, 5, 6, 7, 8, 9, 10))
_WEIGHTS_13 = ((2, 7, 3, 5), (4, 9, 5, 7))


def _check_digit(digits: list[int], weight_sets: tuple[tuple[int, ...], tuple[int, ...]]) -> int:
    primary, fallback = weight_sets
    checksum = sum(d * w for d, w in zip(digits, primary)) % 11
    if checksum == 10:
        checksum = sum(d * w for d, w in zip(digits, fallback)) % 11
        if checksum == 10:
            checksum = 0
    return checksum


def is_valid_eik9(eik: str) -> bool:
    digits = [int(c) for c in eik]
    return len(digits) == 9 and digits[8] == _check_digit(digits[:8], _WEIGHTS_9)


def is_valid_eik13(eik: str) -> bool:
    if len(eik) != 13 or not is_valid_eik9(eik[:9]):
        return False
    digits = [int(c) for c in eik]
    return digits[12] == _check_digit(digits[8:12], _WEIGHTS_13)


def is_ascii_digits(value: str) -> bool:
    return value != "" and all(c in "0123456789" for c in value)


def is_valid_eik(eik: str) -> bool:
    if not is_ascii_digits(eik):
        return False
    if len(eik) == 9:
        return is_valid_eik9(eik)
    if len(eik) == 13:
        return is_valid_eik13(eik)
    return False


__all__ = ["is_ascii_digits", "is_valid_eik", "is_valid_eik9", "is_valid_eik13"]
