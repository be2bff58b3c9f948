import pytest

from padic_tower import (
    CompatibleFamilyReducer,
    LocalizedIntegerRing,
    PadicLimitRing,
    PrimeSpec,
    QuotientProjection,
    ResidueTower,
    integer_family,
)


@pytest.fixture
def spec2():
    return PrimeSpec(2, 16)


@pytest.fixture
def spec3():
    return PrimeSpec(3, 10)


@pytest.fixture
def spec5():
    return PrimeSpec(5, 8)


@pytest.fixture
def zp2(spec2):
    """Exact ℤ_(2)."""
    return LocalizedIntegerRing(spec2)


@pytest.fixture
def zp3(spec3):
    return LocalizedIntegerRing(spec3)


@pytest.fixture
def lazy2():
    """ℤ_2 decided modulo 2^8."""
    return PadicLimitRing(PrimeSpec(2, 8))


@pytest.fixture
def proj2(zp2):
    return QuotientProjection.over(zp2)


@pytest.fixture
def proj3(zp3):
    return QuotientProjection.over(zp3)


@pytest.fixture
def int_reducer3(spec3):
    return CompatibleFamilyReducer(integer_family(ResidueTower(spec3)))


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("PADIC_TOWER_PRIME", raising=False)
    monkeypatch.delenv("PADIC_TOWER_PRECISION", raising=False)
