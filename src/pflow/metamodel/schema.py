"""
Pydantic v2 models for the Petri-net-like process model: tokens, places, transitions,
arrows, and the model container with builder helpers.

Responsibilities
- Define the in-memory model shared by both wire schemas (see pflow.metamodel.codec).
- Normalize token values so "absent" has exactly one form: ``Token(value=(0,))``.
- Keep node and arrow values immutable; only the Model container is mutable, through
  the ``add_*`` builder methods.

Style
- Zero-IO (stdlib + pydantic only).
- Field names are lower_snake; wire names (``modelType``, ``inhibitTransition``) live in
  the codec, not here.

Notes
- Labels are not validated for uniqueness across places and transitions, and arrows are
  not checked for bipartite typing here; see pflow.metamodel.validate for opt-in checks.
- Model equality ignores map insertion order (dict semantics) but not arrow order.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Annotated, Any, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, field_validator

from pflow.core.constants import INT64_MAX, INT64_MIN, NET_TYPE

__all__ = [
    "Int64",
    "Token",
    "TokenLike",
    "as_token",
    "Place",
    "Transition",
    "Arrow",
    "Model",
]

Int64 = Annotated[StrictInt, Field(ge=INT64_MIN, le=INT64_MAX)]


class Token(BaseModel):
    """
    Integer-vector quantity attached to a place's initial/capacity or an arrow's weight.

    Attributes:
        value (tuple[int, ...]): Signed 64-bit components; usually a single component.

    Notes:
        Missing, empty, and all-zero values normalize to ``(0,)``, the canonical absent
        value, which is elided on the wire.

    Raises:
        pydantic.ValidationError: If a component is not an int or is outside int64.

    Examples:
        >>> from pflow.metamodel.schema import Token
        >>> Token.of(3).value
        (3,)
        >>> Token(value=(0, 0)).value
        (0,)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    value: tuple[Int64, ...] = (0,)

    @field_validator("value", mode="before")
    @classmethod
    def _none_is_zero(cls, v: Any) -> Any:
        return (0,) if v is None else v

    @field_validator("value")
    @classmethod
    def _collapse_zero(cls, v: tuple[int, ...]) -> tuple[int, ...]:
        # Empty and all-zero tokens share the single absent form.
        return v if any(v) else (0,)

    @classmethod
    def of(cls, *components: int) -> Token:
        return cls(value=components)

    @property
    def is_zero(self) -> bool:
        return all(c == 0 for c in self.value)

    def __int__(self) -> int:
        return self.value[0]


TokenLike = Union[Token, int, Sequence[int], None]


def as_token(v: TokenLike) -> Token:
    """Coerce an int, a sequence of ints, None, or a Token into a Token."""
    if isinstance(v, Token):
        return v
    if v is None:
        return Token()
    if isinstance(v, int):
        return Token(value=(v,))
    return Token(value=tuple(v))


class Place(BaseModel):
    """
    Graph node holding tokens.

    Attributes:
        offset (int): Externally assigned slot index (not checked for uniqueness).
        initial (Token): Initial marking.
        capacity (Token): Upper bound; zero means unbounded.
        x (int): Layout x coordinate.
        y (int): Layout y coordinate.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    offset: Int64 = 0
    initial: Token = Field(default_factory=Token)
    capacity: Token = Field(default_factory=Token)
    x: Int64 = 0
    y: Int64 = 0


class Transition(BaseModel):
    """Graph node that moves tokens; carries layout coordinates only."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    x: Int64 = 0
    y: Int64 = 0


class Arrow(BaseModel):
    """
    Directed edge between a place and a transition.

    Attributes:
        source (str): Label of the source node.
        target (str): Label of the target node.
        weight (Token): Arc weight; zero means the default weight.
        inhibit (bool): True for an inhibitor arc rather than a flow arc.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    source: str
    target: str
    weight: Token = Field(default_factory=Token)
    inhibit: StrictBool = False


class Model(BaseModel):
    """
    Process model: a type tag, labelled places and transitions, and ordered arrows.

    Attributes:
        model_type (str): Free-form type tag (``modelType`` / ``@type`` on the wire);
            "PetriNet" for built models, empty when a decoded document carries none.
        places (dict[str, Place]): Places by label.
        transitions (dict[str, Transition]): Transitions by label.
        arrows (list[Arrow]): Arrows in wire order.

    Examples:
        >>> from pflow.metamodel.schema import Model
        >>> m = Model(model_type="PetriNet")
        >>> _ = m.add_place("p0", initial=1)
        >>> _ = m.add_transition("t0", x=100)
        >>> _ = m.add_arrow("p0", "t0", weight=1)
        >>> [a.source for a in m.arrows]
        ['p0']
    """

    # model_type is a domain field, not pydantic API.
    model_config = ConfigDict(extra="forbid", validate_assignment=True, protected_namespaces=())

    model_type: str = NET_TYPE
    places: dict[str, Place] = Field(default_factory=dict)
    transitions: dict[str, Transition] = Field(default_factory=dict)
    arrows: list[Arrow] = Field(default_factory=list)

    def add_place(
        self,
        label: str,
        *,
        offset: int | None = None,
        initial: TokenLike = None,
        capacity: TokenLike = None,
        x: int = 0,
        y: int = 0,
    ) -> Place:
        """
        Insert or replace the place named ``label``.

        Args:
            label (str): Place label.
            offset (int | None): Slot index; defaults to the number of places already present.
            initial (TokenLike): Initial marking (int, sequence of ints, or Token).
            capacity (TokenLike): Capacity; zero/None means unbounded.
            x (int): Layout x coordinate.
            y (int): Layout y coordinate.

        Returns:
            Place: The stored place.
        """
        if offset is None:
            offset = len(self.places)
        place = Place(
            offset=offset,
            initial=as_token(initial),
            capacity=as_token(capacity),
            x=x,
            y=y,
        )
        self.places[label] = place
        return place

    def add_transition(self, label: str, *, x: int = 0, y: int = 0) -> Transition:
        transition = Transition(x=x, y=y)
        self.transitions[label] = transition
        return transition

    def add_arrow(
        self,
        source: str,
        target: str,
        *,
        weight: TokenLike = None,
        inhibit: bool = False,
    ) -> Arrow:
        """Append an arrow; arrows keep insertion order."""
        arrow = Arrow(source=source, target=target, weight=as_token(weight), inhibit=inhibit)
        self.arrows.append(arrow)
        return arrow
