from __future__ import annotations

import pytest

from app.core.session_codes import (
    ALPHABET,
    format_session_code,
    generate_session_code,
    is_valid_session_code,
    normalize_session_code,
)


def test_generate_session_code_length_and_charset() -> None:
    code = generate_session_code()
    assert len(code) == 6
    assert set(code).issubset(set(ALPHABET))


def test_generate_session_code_rejects_non_positive_length() -> None:
    with pytest.raises(ValueError):
        generate_session_code(0)


def test_alphabet_skips_ambiguous_characters() -> None:
    assert not {"0", "O", "1", "I"} & set(ALPHABET)


def test_normalize_session_code_strips_separators_and_uppercases() -> None:
    assert normalize_session_code(" abc-def ") == "ABCDEF"
    assert normalize_session_code("abc def") == "ABCDEF"


def test_is_valid_session_code() -> None:
    assert is_valid_session_code("ABCDEF") is True
    assert is_valid_session_code("abc def") is True
    assert is_valid_session_code("ABCDE0") is False
    assert is_valid_session_code("ABC") is False
    assert is_valid_session_code("") is False


def test_format_session_code_groups_in_threes() -> None:
    assert format_session_code("abcdef") == "ABC DEF"
    assert format_session_code("ABC") == "ABC"
