"""Vendor entity — a salesperson who can receive leads."""

from dataclasses import dataclass

from leadflow.domain.errors import InvalidVendorConfig


@dataclass
class Vendor:
    id: str
    display_name: str
    participates: bool = False
    order: int | None = None
    weight: int = 1
    pipeline_override_id: str | None = None
    email: str | None = None
    is_admin: bool = False

    def __post_init__(self) -> None:
        if self.weight < 1:
            raise InvalidVendorConfig(
                f"Vendor {self.id!r}: rotation weight must be at least 1"
            )
        if self.order is not None and self.order < 0:
            raise InvalidVendorConfig(
                f"Vendor {self.id!r}: rotation order must be a non-negative integer"
            )

    def rotation_key(self) -> tuple[bool, int, str]:
        """Sort key: explicit order ascending, unordered vendors last, then id."""
        return (self.order is None, self.order or 0, self.id)
