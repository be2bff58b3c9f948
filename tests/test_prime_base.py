"""Prime validation, exact helpers, env configuration and the error hierarchy."""

from fractions import Fraction

import pytest

from padic_tower import (
    PadicCompatibilityError,
    PadicContractError,
    PadicDomainError,
    PadicError,
    PadicInputError,
    PadicPrecisionError,
    PrimeSpec,
)
from padic_tower.prime_base import (
    MILLER_RABIN_BOUND,
    as_fraction_strict,
    canonical_symmetric_lift,
    is_prime,
    padic_norm,
    require_level,
    valuation_fraction,
    valuation_int,
    valuation_int_trunc,
)


@pytest.mark.parametrize("n", [2, 3, 5, 7, 41, 7919, 2_147_483_647])
def test_is_prime_accepts_primes(n):
    assert is_prime(n)


@pytest.mark.parametrize("n", [-7, 0, 1, 4, 9, 561, 7917, 3215031751])
def test_is_prime_rejects_composites(n):
    assert not is_prime(n)


def test_is_prime_refuses_inputs_beyond_the_witness_bound():
    assert not is_prime(MILLER_RABIN_BOUND - 1)
    with pytest.raises(PadicInputError):
        is_prime(MILLER_RABIN_BOUND)
    with pytest.raises(PadicInputError):
        PrimeSpec(2 ** 89 - 1, 3)


@pytest.mark.parametrize("p,k", [(4, 3), (1, 3), (True, 3), (2, 0), (3, -1), (3, 2.0)])
def test_prime_spec_rejects_bad_parameters(p, k):
    with pytest.raises(PadicInputError):
        PrimeSpec(p, k)


def test_prime_spec_modulus_and_precision():
    spec = PrimeSpec(3, 4)
    assert spec.modulus() == 81
    assert spec.modulus(2) == 9
    assert spec.modulus(0) == 1
    assert spec.with_precision(6) == PrimeSpec(3, 6)


def test_prime_spec_is_frozen():
    spec = PrimeSpec(5, 3)
    with pytest.raises(AttributeError):
        spec.p = 7


@pytest.mark.parametrize(
    "p,height,k",
    [(2, 0, 1), (2, 1, 1), (2, 2, 2), (2, 7, 3), (2, 8, 4), (3, 26, 3), (3, 27, 4)],
)
def test_required_precision_for_height(p, height, k):
    assert PrimeSpec(p).required_precision_for_height(height) == k


def test_from_env_defaults():
    assert PrimeSpec.from_env() == PrimeSpec(2, 16)


def test_from_env_reads_variables(monkeypatch):
    monkeypatch.setenv("PADIC_TOWER_PRIME", "5")
    monkeypatch.setenv("PADIC_TOWER_PRECISION", " 7 ")
    assert PrimeSpec.from_env() == PrimeSpec(5, 7)


def test_from_env_rejects_garbage(monkeypatch):
    monkeypatch.setenv("PADIC_TOWER_PRECISION", "seven")
    with pytest.raises(ValueError, match="PADIC_TOWER_PRECISION"):
        PrimeSpec.from_env()


def test_from_env_rejects_composite(monkeypatch):
    monkeypatch.setenv("PADIC_TOWER_PRIME", "6")
    with pytest.raises(PadicInputError):
        PrimeSpec.from_env()


@pytest.mark.parametrize("bad", [-1, True, 1.0, "2", None])
def test_require_level_rejects(bad):
    with pytest.raises(PadicInputError):
        require_level(bad)


def test_as_fraction_strict():
    assert as_fraction_strict("3/2") == Fraction(3, 2)
    assert as_fraction_strict(4) == Fraction(4)
    with pytest.raises(PadicInputError):
        as_fraction_strict(0.5)
    with pytest.raises(PadicInputError):
        as_fraction_strict("three halves")
    with pytest.raises(PadicInputError):
        as_fraction_strict("1/0")
    with pytest.raises(PadicInputError):
        as_fraction_strict(True)


def test_valuations():
    assert valuation_int(24, 2) == 3
    assert valuation_int(-45, 3) == 2
    assert valuation_int(7, 5) == 0
    assert valuation_int_trunc(0, 2, 5) == 5
    assert valuation_int_trunc(64, 2, 4) == 4
    assert valuation_fraction(Fraction(3, 8), 2) == -3
    assert padic_norm(Fraction(12), 2) == Fraction(1, 4)
    assert padic_norm(Fraction(0), 2) == 0
    with pytest.raises(PadicDomainError):
        valuation_int(0, 3)


def test_canonical_symmetric_lift():
    assert canonical_symmetric_lift(7, 8) == -1
    assert canonical_symmetric_lift(4, 8) == 4
    assert canonical_symmetric_lift(-10, 9) == -1
    with pytest.raises(PadicInputError):
        canonical_symmetric_lift(1, 0)


def test_error_hierarchy():
    for cls in (PadicInputError, PadicContractError, PadicDomainError, PadicPrecisionError):
        assert issubclass(cls, PadicError)
    assert issubclass(PadicError, RuntimeError)
    assert issubclass(PadicCompatibilityError, PadicContractError)
    err = PadicCompatibilityError("boom", analysis={"levels": (1, 2)})
    assert err.analysis == {"levels": (1, 2)}
    assert PadicCompatibilityError("bare").analysis == {}
