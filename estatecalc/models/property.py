from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PropertySummary:
    """Display fields of a listing, as needed by calculation history."""
    id: str
    title: str
    slug: str  # Falls back to the id when the listing has no slug
    price: Decimal = Decimal("0")
