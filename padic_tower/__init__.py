"""
padic_tower: finite-precision approximation of p-adic integers.

    appr(x, n)         canonical residue of x modulo p^n       (DigitExtractor)
    toResidue(n)       ℤ_p → ℤ/p^nℤ                            (QuotientProjection)
    nthHom(r)(n)       Cauchy sequence of a compatible family  (CompatibleFamilyReducer)
    lift(f)            Source → ℤ_p, the projective limit      (UniversalLift)
"""

from .compatible_family import (
    CompatibleFamily,
    CompatibleFamilyReducer,
    HenselRoot,
    NthHomSequence,
    hensel_lift_root,
    hensel_root_family,
    integer_family,
    localized_family,
    projection_family,
)
from .complete_ring import CompleteRing, LocalizedIntegerRing, PadicLimit, PadicLimitRing
from .digit_extractor import Approximation, DigitExtractor
from .prime_base import (
    PadicCompatibilityError,
    PadicContractError,
    PadicDomainError,
    PadicError,
    PadicInputError,
    PadicPrecisionError,
    PrimeSpec,
)
from .quotient_projection import QuotientProjection
from .residue_ring import ResidueElement, ResidueHom, ResidueRing, ResidueTower
from .ring_base import CommutativeRing, IntegerPolynomial, IntegerRing, PolynomialRing
from .universal_lift import UniversalLift

__version__ = "0.1.0"

__all__ = [
    # ---------------------------------------------------------------
    # configuration and errors
    # ---------------------------------------------------------------
    "PrimeSpec",
    "PadicError",
    "PadicInputError",
    "PadicContractError",
    "PadicCompatibilityError",
    "PadicDomainError",
    "PadicPrecisionError",
    # ---------------------------------------------------------------
    # rings
    # ---------------------------------------------------------------
    "CommutativeRing",
    "IntegerRing",
    "IntegerPolynomial",
    "PolynomialRing",
    "ResidueRing",
    "ResidueElement",
    "ResidueTower",
    "ResidueHom",
    "CompleteRing",
    "LocalizedIntegerRing",
    "PadicLimit",
    "PadicLimitRing",
    # ---------------------------------------------------------------
    # approximation tower
    # ---------------------------------------------------------------
    "Approximation",
    "DigitExtractor",
    "QuotientProjection",
    # ---------------------------------------------------------------
    # compatible families and their limit
    # ---------------------------------------------------------------
    "CompatibleFamily",
    "CompatibleFamilyReducer",
    "NthHomSequence",
    "HenselRoot",
    "hensel_lift_root",
    "hensel_root_family",
    "integer_family",
    "localized_family",
    "projection_family",
    "UniversalLift",
]
