"""NailSet: one produced item group (shape + quantity + design) in an order."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum

from nailstudio.domain.exceptions import MissingDesignInputError, ValidationError
from nailstudio.domain.model.value_objects import Quantity


class SizingMode(Enum):
    STANDARD = "standard"
    PER_SET = "perSet"


@dataclass(frozen=True)
class SizeSpec:
    """Sizing for a set: a standard size, or explicit per-finger values."""

    mode: SizingMode = SizingMode.STANDARD
    values: dict[str, str] = field(default_factory=dict)

    @staticmethod
    def from_raw(raw: dict | None) -> SizeSpec:
        """Build from loosely-typed input (``custom`` is accepted for perSet)."""
        if not raw or not isinstance(raw, dict):
            return SizeSpec()
        mode = (
            SizingMode.PER_SET
            if raw.get("mode") in ("perSet", "custom")
            else SizingMode.STANDARD
        )
        values = raw.get("values") or {}
        if not isinstance(values, dict):
            values = {}
        return SizeSpec(
            mode=mode,
            values={
                str(finger): value if isinstance(value, str) else ""
                for finger, value in values.items()
            },
        )

    def to_raw(self) -> dict:
        return {"mode": self.mode.value, "values": dict(self.values)}


@dataclass(frozen=True)
class NailSet:
    """One nail set inside an order.

    The design-input invariant (upload, description or follow-up flag) is
    checked by ``validate_design_input()`` when an order is created, not at
    pricing time: a cart preview may be priced before it is complete.
    """

    shape_id: str
    quantity: Quantity
    name: str | None = None
    description: str = ""
    set_notes: str = ""
    design_uploads: tuple[str, ...] = ()
    sizes: SizeSpec = field(default_factory=SizeSpec)
    requires_follow_up: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        if not self.shape_id or not str(self.shape_id).strip():
            raise ValidationError("Nail set shape is required")

    @staticmethod
    def create(
        shape_id: str,
        quantity: int,
        name: str | None = None,
        description: str = "",
        set_notes: str = "",
        design_uploads: list[str] | tuple[str, ...] = (),
        sizes: SizeSpec | dict | None = None,
        requires_follow_up: bool = False,
    ) -> NailSet:
        """Create a set from user input, trimming text fields."""
        return NailSet(
            shape_id=shape_id.strip() if isinstance(shape_id, str) else shape_id,
            quantity=Quantity(quantity),
            name=name.strip() if name and name.strip() else None,
            description=(description or "").strip(),
            set_notes=(set_notes or "").strip(),
            design_uploads=tuple(u for u in design_uploads if u),
            sizes=sizes if isinstance(sizes, SizeSpec) else SizeSpec.from_raw(sizes),
            requires_follow_up=bool(requires_follow_up),
        )

    @property
    def has_custom_art(self) -> bool:
        """True when the set carries design work that may incur a setup fee."""
        return bool(self.design_uploads) or bool(self.description)

    @property
    def has_design_input(self) -> bool:
        return self.has_custom_art or self.requires_follow_up

    def validate_design_input(self, label: str) -> None:
        if not self.has_design_input:
            raise MissingDesignInputError(label)
