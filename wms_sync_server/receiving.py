"""Receiving sessions and their translation into WMS receive-item lines.

One receiving item can carry full pallets, a partial remainder and a mixed
pallet at the same time. Each physical pallet becomes its own line, emitted
in that order, and damaged or defective stock is put on hold.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional


HOLD_CONDITIONS = ("damaged", "defective")


def as_identifier(value: Any) -> Any:
    """Numeric provider ids travel as ints; anything else is passed through."""
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value


def _count(value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 0
    return number if number > 0 else 0


TRUE_STRINGS = ("true", "1", "yes", "y")


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


def _number(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


@dataclass(frozen=True)
class Dimensions:
    length: float
    width: float
    height: float

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Dimensions"]:
        if not isinstance(data, Mapping):
            return None
        length = _number(data.get("length"))
        width = _number(data.get("width"))
        height = _number(data.get("height"))
        if length is None or width is None or height is None:
            return None
        return cls(length=length, width=width, height=height)

    def to_dict(self) -> Dict[str, float]:
        return {"length": self.length, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class ReceivingDefaults:
    """Last-resort business fallbacks used when an item declares nothing."""

    weight_per_case: float = 25.0
    pallet: Dimensions = Dimensions(length=48.0, width=40.0, height=60.0)

    @classmethod
    def from_env(cls) -> "ReceivingDefaults":
        base = cls()
        return cls(
            weight_per_case=float(os.getenv("WMS_WEIGHT_PER_CASE", base.weight_per_case)),
            pallet=Dimensions(
                length=float(os.getenv("WMS_PALLET_LENGTH", base.pallet.length)),
                width=float(os.getenv("WMS_PALLET_WIDTH", base.pallet.width)),
                height=float(os.getenv("WMS_PALLET_HEIGHT", base.pallet.height)),
            ),
        )


@dataclass(frozen=True)
class ReceivingItem:
    item_number: str
    full_pallets: int = 0
    cases_per_pallet: int = 0
    partial_cases: int = 0
    mixed_pallet: bool = False
    mixed_pallet_qty: int = 0
    condition: str = "ok"
    notes: str = ""
    dimensions: Optional[Dimensions] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ReceivingItem":
        return cls(
            item_number=str(data.get("itemNumber") or data.get("item_number") or ""),
            full_pallets=_count(data.get("fullPallets", data.get("full_pallets"))),
            cases_per_pallet=_count(data.get("casesPerPallet", data.get("cases_per_pallet"))),
            partial_cases=_count(data.get("partialCases", data.get("partial_cases"))),
            mixed_pallet=_flag(data.get("mixedPallet", data.get("mixed_pallet", False))),
            mixed_pallet_qty=_count(data.get("mixedPalletQty", data.get("mixed_pallet_qty"))),
            condition=str(data.get("condition") or "ok").lower(),
            notes=str(data.get("notes") or ""),
            dimensions=Dimensions.from_dict(data.get("dimensions")),
        )

    @property
    def expected_qty(self) -> int:
        full = _count(self.full_pallets) * _count(self.cases_per_pallet)
        mixed = _count(self.mixed_pallet_qty) if self.mixed_pallet else 0
        return full + _count(self.partial_cases) + mixed


@dataclass(frozen=True)
class ReceivingSession:
    customer_id: str
    container_number: str = ""
    po_number: str = ""
    started_by: str = ""
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    review_notes: str = ""
    type: str = "normal"
    items: List[ReceivingItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ReceivingSession":
        raw_items = data.get("items") or []
        return cls(
            customer_id=str(data.get("customerId") or data.get("customer_id") or ""),
            container_number=str(data.get("containerNumber") or data.get("container_number") or ""),
            po_number=str(data.get("poNumber") or data.get("po_number") or ""),
            started_by=str(data.get("startedBy") or data.get("started_by") or ""),
            started_at=data.get("startedAt") or data.get("started_at"),
            completed_at=data.get("completedAt") or data.get("completed_at"),
            review_notes=str(data.get("reviewNotes") or data.get("review_notes") or ""),
            type=str(data.get("type") or "normal").lower(),
            items=[ReceivingItem.from_dict(it) for it in raw_items if isinstance(it, Mapping)],
        )

    @property
    def is_blind(self) -> bool:
        return self.type == "blind"


@dataclass(frozen=True)
class PalletEntry:
    sku: str
    qty: int
    dimensions: Dimensions
    weight: float
    notes: Optional[str] = None
    on_hold: bool = False
    on_hold_reason: Optional[str] = None

    def to_receive_item(self) -> Dict[str, Any]:
        line: Dict[str, Any] = {
            "itemIdentifier": {"sku": self.sku},
            "qty": self.qty,
            "weightImperial": self.weight,
            "lengthImperial": self.dimensions.length,
            "widthImperial": self.dimensions.width,
            "heightImperial": self.dimensions.height,
        }
        if self.notes:
            line["notes"] = self.notes
        if self.on_hold:
            line["onHold"] = True
            line["onHoldReason"] = self.on_hold_reason
        return line


def _join_notes(*parts: str) -> Optional[str]:
    text = "; ".join(p for p in parts if p)
    return text or None


def build_pallet_entries(
    item: ReceivingItem, defaults: ReceivingDefaults = ReceivingDefaults()
) -> List[PalletEntry]:
    """Split one receiving item into pallet-level lines.

    Order is fixed: one line per full pallet, then the partial remainder,
    then the mixed pallet. The quantities always add up to
    full_pallets * cases_per_pallet + partial_cases + mixed_pallet_qty.
    """
    dims = item.dimensions or defaults.pallet
    full_pallets = _count(item.full_pallets)
    cases_per_pallet = _count(item.cases_per_pallet)
    partial_cases = _count(item.partial_cases)
    mixed_qty = _count(item.mixed_pallet_qty)

    # (qty, notes) per physical pallet
    lines: List[tuple[int, Optional[str]]] = []
    if full_pallets > 0 and cases_per_pallet > 0:
        for _ in range(full_pallets):
            lines.append((cases_per_pallet, item.notes or None))
    if partial_cases > 0:
        lines.append((partial_cases, _join_notes(f"Partial pallet: {partial_cases} cases remainder", item.notes)))
    if item.mixed_pallet and mixed_qty > 0:
        lines.append((mixed_qty, _join_notes(f"Mixed pallet: {mixed_qty} cases", item.notes)))

    condition = (item.condition or "ok").lower()
    on_hold = condition in HOLD_CONDITIONS
    reason = f"Received {condition}" if on_hold else None

    return [
        PalletEntry(
            sku=item.item_number,
            qty=qty,
            dimensions=dims,
            weight=qty * defaults.weight_per_case,
            notes=notes,
            on_hold=on_hold,
            on_hold_reason=reason,
        )
        for qty, notes in lines
    ]


def build_session_entries(
    session: ReceivingSession, defaults: ReceivingDefaults = ReceivingDefaults()
) -> List[PalletEntry]:
    entries: List[PalletEntry] = []
    for item in session.items:
        entries.extend(build_pallet_entries(item, defaults))
    return entries


def compose_notes(session: ReceivingSession) -> str:
    parts = []
    if session.started_by:
        parts.append(f"Received by {session.started_by}")
    if session.review_notes:
        parts.append(f"Review notes: {session.review_notes}")
    if session.is_blind:
        parts.append("BLIND RECEIPT")
    return " | ".join(parts)


def build_receiving_payload(
    session: ReceivingSession,
    facility_id: str,
    defaults: ReceivingDefaults = ReceivingDefaults(),
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Assemble the receiver transaction for one session."""
    now = now or datetime.now(timezone.utc)
    entries = build_session_entries(session, defaults)
    reference = session.container_number or f"RCV-{now:%Y%m%d%H%M%S}"

    payload: Dict[str, Any] = {
        "customerIdentifier": {"id": as_identifier(session.customer_id)},
        "facilityIdentifier": {"id": as_identifier(facility_id)},
        "referenceNum": reference,
        "arrivalDate": session.completed_at or session.started_at or now.isoformat(),
        "expectedDate": session.started_at or now.isoformat(),
        "notes": compose_notes(session),
        "receiveItems": [entry.to_receive_item() for entry in entries],
    }
    if session.po_number:
        payload["poNum"] = session.po_number
    return payload
