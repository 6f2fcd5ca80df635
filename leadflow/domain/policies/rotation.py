"""RotationPolicy — deterministic weighted round-robin vendor selection."""

from __future__ import annotations

from dataclasses import dataclass

from leadflow.domain.entities.vendor import Vendor
from leadflow.domain.errors import NoEligibleVendors


@dataclass(frozen=True)
class RotationPick:
    """Result of one rotation step."""

    vendor: Vendor
    slot: int  # index in the weight-expanded sequence
    queue_position: int  # 1-based index among participating vendors
    total_eligible: int


def order_participants(vendors: list[Vendor]) -> list[Vendor]:
    """Participating vendors in rotation order (order ASC nulls last, id ASC)."""
    return sorted((v for v in vendors if v.participates), key=Vendor.rotation_key)


def expand_by_weight(participants: list[Vendor]) -> list[Vendor]:
    """Repeat each vendor ``weight`` times in place: [A, B, C(w=2)] → [A, B, C, C]."""
    sequence: list[Vendor] = []
    for vendor in participants:
        sequence.extend([vendor] * vendor.weight)
    return sequence


def pick_next(
    vendors: list[Vendor],
    last_vendor_id: str | None = None,
    last_slot: int | None = None,
) -> RotationPick:
    """Pick the vendor that follows the rotation cursor.

    1. Order participating vendors and expand them by weight.
    2. Locate the cursor: the stored slot if it still holds the last vendor,
       otherwise the first slot of that vendor. A missing cursor, or a
       vendor no longer in rotation, restarts at slot 0.
    3. The next slot (wrapping around) is the result.

    Pure function of its arguments: no clock, no randomness.

    Args:
        vendors: candidate vendors, in any order; non-participants are ignored.
        last_vendor_id: vendor of the last committed assignment, if any.
        last_slot: expanded-sequence slot of that assignment, if known.

    Returns:
        RotationPick with the chosen vendor and its new slot.

    Raises:
        NoEligibleVendors: if no vendor participates.
    """
    participants = order_participants(vendors)
    if not participants:
        raise NoEligibleVendors()

    sequence = expand_by_weight(participants)
    slot = _next_slot(sequence, last_vendor_id, last_slot)
    chosen = sequence[slot]

    position = next(i for i, v in enumerate(participants) if v.id == chosen.id) + 1
    return RotationPick(
        vendor=chosen,
        slot=slot,
        queue_position=position,
        total_eligible=len(participants),
    )


def _next_slot(
    sequence: list[Vendor], last_vendor_id: str | None, last_slot: int | None
) -> int:
    if last_vendor_id is None:
        return 0

    if (
        last_slot is not None
        and 0 <= last_slot < len(sequence)
        and sequence[last_slot].id == last_vendor_id
    ):
        current = last_slot
    else:
        current = next(
            (i for i, v in enumerate(sequence) if v.id == last_vendor_id), None
        )
        if current is None:
            return 0

    return (current + 1) % len(sequence)
