"""Pipeline and Stage — read-only sales funnel catalog."""

from dataclasses import dataclass


@dataclass
class Pipeline:
    id: str
    name: str
    responsible_vendor_id: str | None = None
    active: bool = True


@dataclass
class Stage:
    id: str
    pipeline_id: str
    name: str
    is_initial: bool = False
    position: int = 0
