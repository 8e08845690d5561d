"""
Mock catalog for the competitor selection demo.

Stands in for a product search backend; nothing here is traced.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class Product(BaseModel):
    """A catalog product."""
    asin: str
    title: str
    price: float = Field(ge=0)
    rating: float = Field(ge=0, le=5)
    reviews: int = Field(ge=0)
    category: Optional[str] = None


MOCK_PRODUCTS: List[Product] = [
    Product(asin="B001", title="HydroFlask 32oz Wide Mouth", price=44.99, rating=4.5, reviews=8932),
    Product(asin="B002", title="Yeti Rambler 26oz", price=34.99, rating=4.4, reviews=5621),
    Product(asin="B003", title="Generic Water Bottle", price=8.99, rating=3.2, reviews=45),
    Product(asin="B004", title="Stanley Adventure Quencher", price=35.0, rating=4.3, reviews=4102),
    Product(asin="B005", title="YETI Rambler 32oz", price=39.99, rating=4.6, reviews=12021),
    Product(asin="B006", title="Premium Titanium Bottle", price=89.0, rating=4.8, reviews=234),
    Product(asin="B007", title="Simple Modern Summit", price=32.0, rating=4.4, reviews=3421),
    Product(asin="B008", title="Bottle Cleaning Brush Set", price=12.99, rating=4.6, reviews=3421),
]

REFERENCE_PRODUCT = Product(
    asin="B0XYZ123",
    title="Stainless Steel Water Bottle 32oz Insulated",
    category="Sports & Outdoors",
    price=29.99,
    rating=4.2,
    reviews=1247,
)

# Total catalog matches reported by the mock search
TOTAL_SEARCH_MATCHES = 2847


def generate_keywords(title: str) -> List[str]:
    """Two search keyword variations built from the first words of a title."""
    words = title.lower().split(" ")

    def word(i: int) -> str:
        return words[i] if i < len(words) else ""

    return [
        " ".join(w for w in (word(0), word(1), "bottle") if w),
        " ".join(w for w in ("insulated", "water bottle", word(2)) if w),
    ]


def simulate_search() -> List[Product]:
    return list(MOCK_PRODUCTS)
