"""Tests for application token issuance."""

import pytest

from packages.core.errors import TokenGenerationError
from packages.core.tokens import BASE58_ALPHABET, TokenIssuer, generate_token

pytestmark = pytest.mark.unit


def test_generate_token_is_36_base58_characters() -> None:
    token = generate_token()

    assert len(token) == 36
    assert set(token) <= set(BASE58_ALPHABET)


def test_base58_alphabet_excludes_ambiguous_characters() -> None:
    for char in "0OIl":
        assert char not in BASE58_ALPHABET
    assert len(BASE58_ALPHABET) == 58


def test_issuer_regenerates_on_collision() -> None:
    candidates = iter(["taken", "taken", "free"])
    issuer = TokenIssuer(lambda t: t == "taken", generator=lambda: next(candidates))

    assert issuer.issue() == "free"


def test_issuer_gives_up_after_max_attempts() -> None:
    issuer = TokenIssuer(lambda _t: True, max_attempts=3, generator=lambda: "taken")

    with pytest.raises(TokenGenerationError):
        issuer.issue()
