"""Type widening over observed semantic types.

A field remembers the set of kinds it has been observed with. Merging two
observations is set union, so the outcome never depends on the order in
which documents arrive. ``resolve_type`` turns a set into the widened type:

    nested > opaque > text > float > integer

with scalars from unrelated families (e.g. boolean and integer) widening to
opaque. ``resolve_type`` is monotone: adding kinds to a set never yields a
narrower type.
"""

from typing import Iterable, Optional

from schemascout.models.schema import SemanticType

NUMERIC_TYPES = frozenset({SemanticType.INTEGER, SemanticType.FLOAT})

# Partial order used to check widening: a type may only move to one of these
WIDER_OR_EQUAL: dict[SemanticType, frozenset[SemanticType]] = {
    SemanticType.NESTED: frozenset({SemanticType.NESTED}),
    SemanticType.OPAQUE: frozenset({SemanticType.OPAQUE, SemanticType.NESTED}),
    SemanticType.TEXT: frozenset({SemanticType.TEXT, SemanticType.OPAQUE, SemanticType.NESTED}),
    SemanticType.FLOAT: frozenset({
        SemanticType.FLOAT, SemanticType.TEXT, SemanticType.OPAQUE, SemanticType.NESTED,
    }),
    SemanticType.INTEGER: frozenset({
        SemanticType.INTEGER, SemanticType.FLOAT, SemanticType.TEXT,
        SemanticType.OPAQUE, SemanticType.NESTED,
    }),
    SemanticType.BOOLEAN: frozenset({
        SemanticType.BOOLEAN, SemanticType.TEXT, SemanticType.OPAQUE, SemanticType.NESTED,
    }),
    SemanticType.IDENTIFIER: frozenset({
        SemanticType.IDENTIFIER, SemanticType.TEXT, SemanticType.OPAQUE, SemanticType.NESTED,
    }),
}


def _scalar_family(kind: SemanticType) -> str:
    return "numeric" if kind in NUMERIC_TYPES else kind.value


def resolve_type(kinds: Iterable[SemanticType]) -> Optional[SemanticType]:
    """Widened type of a set of observed kinds; None for an empty set."""
    kinds = frozenset(kinds)
    if not kinds:
        return None
    if SemanticType.NESTED in kinds:
        return SemanticType.NESTED
    if SemanticType.OPAQUE in kinds:
        return SemanticType.OPAQUE

    scalars = kinds - {SemanticType.TEXT}
    if len({_scalar_family(k) for k in scalars}) > 1:
        return SemanticType.OPAQUE
    if SemanticType.TEXT in kinds:
        return SemanticType.TEXT
    if scalars <= NUMERIC_TYPES:
        return SemanticType.FLOAT if SemanticType.FLOAT in scalars else SemanticType.INTEGER
    return next(iter(scalars))


def join_types(left: SemanticType, right: SemanticType) -> SemanticType:
    """Pairwise widening of two observed types.

    1. nested on either side -> nested (an empty object upgrades to nested)
    2. opaque on either side -> opaque
    3. text on either side -> text
    4. integer with float -> float
    5. any other pair of distinct scalars -> opaque
    """
    return JOIN_TABLE[frozenset((left, right))]


def is_widening(before: Optional[SemanticType], after: Optional[SemanticType]) -> bool:
    """True if ``after`` is the same as or wider than ``before``."""
    if before is None:
        return True
    if after is None:
        return False
    return after in WIDER_OR_EQUAL[before]


# Exhaustive table over every unordered pair, including identical pairs
JOIN_TABLE: dict[frozenset, SemanticType] = {
    frozenset((a, b)): resolve_type((a, b))
    for a in SemanticType
    for b in SemanticType
}
