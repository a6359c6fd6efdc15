"""
Opt-in structural checks for process models.

Purpose
- Report label collisions and arrow typing problems that decoding deliberately tolerates.
- Never run implicitly: decode, encode, and identify stay permissive.

Checks performed
- A label used both as a place and as a transition.
- An arrow endpoint that names no place or transition.
- An arrow that is not place→transition or transition→place.
- An inhibitor arrow whose source is not a place.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .schema import Model

__all__ = [
    "StructureIssueKind",
    "StructureIssue",
    "check_structure",
]


class StructureIssueKind(Enum):
    LABEL_COLLISION = "label_collision"
    UNKNOWN_ENDPOINT = "unknown_endpoint"
    NOT_BIPARTITE = "not_bipartite"
    INHIBITOR_FROM_TRANSITION = "inhibitor_from_transition"


@dataclass(frozen=True)
class StructureIssue:
    kind: StructureIssueKind
    subject: str
    detail: str


def check_structure(model: Model) -> list[StructureIssue]:
    """
    Collect structural problems in ``model``.

    Args:
        model (Model): Model to inspect.

    Returns:
        list[StructureIssue]: Issues in a stable order (collisions sorted by label, then
        arrows in model order). Empty for a well-formed bipartite net.

    Examples:
        >>> from pflow.metamodel.schema import Model
        >>> from pflow.metamodel.validate import check_structure
        >>> m = Model()
        >>> _ = m.add_place("p0"); _ = m.add_transition("t0")
        >>> _ = m.add_arrow("p0", "t0")
        >>> check_structure(m)
        []
    """
    issues: list[StructureIssue] = []

    for label in sorted(model.places.keys() & model.transitions.keys()):
        issues.append(
            StructureIssue(
                StructureIssueKind.LABEL_COLLISION,
                label,
                "label names both a place and a transition",
            )
        )

    def kind_of(label: str) -> str | None:
        if label in model.places:
            return "place"
        if label in model.transitions:
            return "transition"
        return None

    for i, arrow in enumerate(model.arrows):
        subject = f"arcs[{i}]"
        src, tgt = kind_of(arrow.source), kind_of(arrow.target)
        missing = [lbl for lbl, k in ((arrow.source, src), (arrow.target, tgt)) if k is None]
        if missing:
            issues.append(
                StructureIssue(
                    StructureIssueKind.UNKNOWN_ENDPOINT,
                    subject,
                    f"unknown label(s) {missing!r}",
                )
            )
            continue
        if src == tgt:
            issues.append(
                StructureIssue(
                    StructureIssueKind.NOT_BIPARTITE,
                    subject,
                    f"{arrow.source!r} -> {arrow.target!r} joins two {src}s",
                )
            )
        elif arrow.inhibit and src != "place":
            issues.append(
                StructureIssue(
                    StructureIssueKind.INHIBITOR_FROM_TRANSITION,
                    subject,
                    f"inhibitor arc must start at a place, not {arrow.source!r}",
                )
            )

    return issues
