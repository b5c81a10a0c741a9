"""
CNPJ (Brazilian company tax id) utilities.

Provides normalization, check-digit validation and display formatting
so every clinic lookup and uniqueness check works on the same digits-only form.
"""

import re

CNPJ_LENGTH = 14

# Weights for the first and second check digits
_FIRST_DIGIT_WEIGHTS = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_SECOND_DIGIT_WEIGHTS = (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)


def normalize_digits(value: str) -> str:
    """
    Strip every non-digit character.

    Args:
        value: Identifier as typed by the user (may contain dots, slashes, dashes)

    Returns:
        Digits-only string
    """
    return re.sub(r'\D', '', value or '')


def _check_digit(digits: str, weights: tuple[int, ...]) -> int:
    total = sum(int(d) * w for d, w in zip(digits, weights))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def is_valid_cnpj(value: str) -> bool:
    """
    Validate a CNPJ with the two mod-11 check digit passes.

    Accepts formatted or digits-only input. Sequences of 14 identical
    digits pass the arithmetic but are rejected explicitly.

    Args:
        value: CNPJ to validate

    Returns:
        True if both check digits match
    """
    cnpj = normalize_digits(value)
    if len(cnpj) != CNPJ_LENGTH:
        return False

    if cnpj == cnpj[0] * CNPJ_LENGTH:
        return False

    if _check_digit(cnpj[:12], _FIRST_DIGIT_WEIGHTS) != int(cnpj[12]):
        return False

    return _check_digit(cnpj[:13], _SECOND_DIGIT_WEIGHTS) == int(cnpj[13])


def format_cnpj(value: str) -> str:
    """
    Render a CNPJ as NN.NNN.NNN/NNNN-NN.

    Raises:
        ValueError: If the value does not hold exactly 14 digits
    """
    cnpj = normalize_digits(value)
    if len(cnpj) != CNPJ_LENGTH:
        raise ValueError('CNPJ deve conter 14 dígitos')
    return f"{cnpj[:2]}.{cnpj[2:5]}.{cnpj[5:8]}/{cnpj[8:12]}-{cnpj[12:]}"
