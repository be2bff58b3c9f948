from fractions import Fraction

import pytest

from padic_tower import (
    CompatibleFamily,
    CompatibleFamilyReducer,
    IntegerPolynomial,
    IntegerRing,
    LocalizedIntegerRing,
    PadicCompatibilityError,
    PadicContractError,
    PadicDomainError,
    PadicInputError,
    PadicLimit,
    PadicLimitRing,
    PadicPrecisionError,
    PrimeSpec,
    QuotientProjection,
    ResidueTower,
    UniversalLift,
    hensel_root_family,
    integer_family,
    localized_family,
)


@pytest.fixture
def int_lift3(int_reducer3):
    return UniversalLift(int_reducer3)


def test_lift_of_integers(int_lift3):
    assert isinstance(int_lift3(5), PadicLimit)
    assert int_lift3(5).approx(4) == 5
    assert int_lift3(-1).approx(3) == 26
    assert int_lift3(5) is int_lift3(5)
    assert int_lift3.approximate(5, 0) == 0


@pytest.mark.parametrize("r", [0, 1, -1, 5, 35, -79])
def test_universal_property(int_lift3, r):
    for n in range(int_lift3.default_depth() + 1):
        assert int_lift3.verify_universal_property(r, n)


@pytest.mark.parametrize("r,s", [(5, 7), (-1, 1), (0, 9), (-8, 13)])
def test_lift_is_a_ring_hom(int_lift3, r, s):
    report = int_lift3.ring_hom_report(r, s)
    assert all(report.values()), report
    assert int_lift3.verify_ring_hom(r, s, 6)


def test_uniqueness(int_lift3):
    assert int_lift3.lift_unique(lambda r: r, [0, 1, -1, 5, 35])


def test_candidate_breaking_the_projection_law_is_refused(int_lift3):
    with pytest.raises(PadicContractError):
        int_lift3.lift_unique(lambda r: r + 1, [5], depth=3)


class TestRoundTrip:
    @pytest.mark.parametrize("x", [0, 3, -1, Fraction(1, 3), Fraction(-7, 5)])
    def test_lift_self_is_identity(self, proj2, x):
        lift_self = UniversalLift.from_projection(proj2)
        exact = proj2.ring
        for n in range(lift_self.default_depth() + 1):
            assert lift_self(x).approx(n) == exact.approximate(x, n)

    def test_lift_self_over_lazy_ring(self, lazy2):
        proj = QuotientProjection.over(lazy2)
        lift_self = UniversalLift.from_projection(proj)
        assert lift_self(Fraction(1, 3)).approx(8) == 171
        assert lazy2.equal_up_to(lift_self(-1), -1, 8)
        assert lift_self.verify_universal_property(Fraction(1, 3), 8)

    def test_lazy_family_cannot_answer_beyond_its_levels(self, lazy2):
        proj = QuotientProjection.over(lazy2)
        lift_self = UniversalLift.from_projection(proj, PadicLimitRing(PrimeSpec(2, 12)))
        with pytest.raises(PadicPrecisionError):
            lift_self(1).approx(10)


def test_lift_of_localized_family(zp3):
    lift = UniversalLift.of_family(localized_family(zp3))
    half = lift(Fraction(1, 2))
    assert half.approx(3) == 14
    assert (half * 2).approx(10) == 1
    for n in range(6):
        assert lift.verify_universal_property(Fraction(1, 2), n)


class TestHenselLift:
    def test_sqrt_minus_one(self, spec5):
        x = IntegerPolynomial.x()
        poly = x * x + IntegerPolynomial.of([1])
        lift = UniversalLift.of_family(hensel_root_family(ResidueTower(spec5), poly, 2))
        alpha = lift(x)
        assert alpha.approx(4) == 182
        ring = lift.limit_ring
        assert ring.is_zero(ring.add(ring.mul(alpha, alpha), 1))
        assert lift.verify_ring_hom(x, x + IntegerPolynomial.of([2]))

    def test_root_is_not_a_small_integer(self, spec5):
        x = IntegerPolynomial.x()
        poly = x * x + IntegerPolynomial.of([1])
        lift = UniversalLift.of_family(hensel_root_family(ResidueTower(spec5), poly, 2))
        with pytest.raises(PadicDomainError):
            lift.recognize_integer(x, 1000)


def test_recognize_integer(int_lift3, zp3):
    assert int_lift3.recognize_integer(-17, 20) == -17
    assert int_lift3.recognize_integer(0, 0) == 0
    with pytest.raises(PadicDomainError):
        int_lift3.recognize_integer(100, 5)
    with pytest.raises(PadicInputError):
        int_lift3.recognize_integer(5, -1)
    half = UniversalLift.of_family(localized_family(zp3))
    with pytest.raises(PadicDomainError):
        half.recognize_integer(Fraction(1, 2), 3)


def test_incompatible_family_is_reported(spec3):
    shifted = CompatibleFamily(IntegerRing(), ResidueTower(spec3), lambda n, r: r + n, name="shifted")
    lift = UniversalLift.of_family(shifted)
    with pytest.raises(PadicCompatibilityError) as info:
        lift(3).approx(2)
    assert info.value.analysis["levels"] == (2, 3)
    assert info.value.analysis["values"] == (5, 6)


def test_family_broken_only_at_level_one_is_reported(spec3):
    """f_1(r) = r + 1 and f_n(r) = r above: levels 2.. agree, level 1 does not."""
    family = CompatibleFamily(
        IntegerRing(), ResidueTower(spec3), lambda n, r: r + 1 if n == 1 else r, name="bent"
    )
    lift = UniversalLift.of_family(family)
    assert lift(5).approx(3) == 5
    with pytest.raises(PadicCompatibilityError) as info:
        lift(5).approx(1)
    assert info.value.analysis["levels"] == (1, 2)
    assert info.value.analysis["precision"] == 1


def test_guard_counts_the_levels_checked(spec3):
    """f_n(r) = r below level 4, r + 1 from there: caught only when level 4 is in the window."""
    family = CompatibleFamily(
        IntegerRing(), ResidueTower(spec3), lambda n, r: r if n < 4 else r + 1, name="late"
    )
    assert UniversalLift.of_family(family, guard=1).approximate(2, 2) == 2
    with pytest.raises(PadicCompatibilityError) as info:
        UniversalLift.of_family(family, guard=2).approximate(2, 2)
    assert info.value.analysis["levels"] == (2, 4)
    assert info.value.analysis["guard"] == 2


def test_construction_is_validated(int_reducer3):
    with pytest.raises(PadicInputError):
        UniversalLift("reducer")
    with pytest.raises(PadicInputError):
        UniversalLift(int_reducer3, PadicLimitRing(PrimeSpec(2, 4)))
    with pytest.raises(PadicInputError):
        UniversalLift(int_reducer3, guard=-1)


def test_default_limit_ring_follows_the_tower(spec3):
    lift = UniversalLift.of_family(integer_family(ResidueTower(spec3)))
    assert lift.limit_ring.spec == spec3
    assert lift.default_depth() == spec3.k
    assert lift.guard == 1


def test_lift_matches_exact_ring_on_integers(spec3):
    exact = LocalizedIntegerRing(spec3)
    lift = UniversalLift(CompatibleFamilyReducer(integer_family(ResidueTower(spec3))))
    for r in (-40, -1, 0, 2, 81):
        assert lift(r).approx(spec3.k) == exact.approximate(r, spec3.k)


def test_lazy_inputs_are_not_memoised(lazy2):
    proj = QuotientProjection.over(lazy2)
    lift_self = UniversalLift.from_projection(proj)
    for _ in range(50):
        assert lift_self(lazy2.element(1)).approx(8) == 1
    assert lift_self._lifts == {}
    assert lift_self.reducer._sequences == {}
    lift_self(3)
    assert list(lift_self._lifts) == [3]
