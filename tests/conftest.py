"""Shared test fixtures."""

import json
from dataclasses import dataclass, field
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from src.db.models import (
    Base,
    Category,
    CategoryFilterCharacteristic,
    CharacteristicType,
    Product,
    ProductCharacteristic,
)
from src.filters.store import CatalogStore


class InMemoryCache:
    """FilterCache double that records reads and writes."""

    def __init__(self):
        self.data: dict[str, bytes] = {}
        self.ttls: dict[str, int] = {}
        self.gets = 0
        self.sets = 0

    def get(self, key: str) -> bytes | None:
        self.gets += 1
        return self.data.get(key)

    def set_with_ttl(self, key: str, value: bytes, ttl_seconds: int) -> None:
        self.sets += 1
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    def delete(self, key: str) -> None:
        self.data.pop(key, None)
        self.ttls.pop(key, None)


@dataclass
class SeededCatalog:
    """IDs of the rows created by the ``catalog`` fixture, keyed by slug."""

    categories: dict[str, int] = field(default_factory=dict)
    types: dict[str, int] = field(default_factory=dict)
    products: dict[str, int] = field(default_factory=dict)


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    with Session(db_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def store(db_session) -> CatalogStore:
    return CatalogStore(db_session)


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def add_category(db_session):
    """Factory creating a category with characteristic types and products.

    ``characteristics`` is a list of ``(slug, name)`` pairs whose list order
    becomes the display position. ``products`` is a list of
    ``(slug, price, brand, {type_slug: raw_value})`` tuples.
    """

    def _add(
        slug: str,
        products=(),
        characteristics=(),
        parent_id: int | None = None,
        seeded: SeededCatalog | None = None,
    ) -> SeededCatalog:
        seeded = seeded or SeededCatalog()
        category = Category(slug=slug, name=slug.title(), parent_id=parent_id)
        db_session.add(category)
        db_session.flush()
        seeded.categories[slug] = category.id

        for position, (type_slug, type_name) in enumerate(characteristics, start=1):
            char_type = db_session.query(CharacteristicType).filter_by(
                slug=type_slug
            ).one_or_none()
            if char_type is None:
                char_type = CharacteristicType(slug=type_slug, name=type_name)
                db_session.add(char_type)
                db_session.flush()
            seeded.types[type_slug] = char_type.id
            db_session.add(
                CategoryFilterCharacteristic(
                    category_id=category.id,
                    characteristic_type_id=char_type.id,
                    position=position,
                )
            )

        for product_slug, price, brand, values in products:
            product = Product(
                category_id=category.id,
                slug=product_slug,
                name=product_slug,
                price=Decimal(str(price)),
                brand=brand,
            )
            for type_slug, raw in values.items():
                type_id = seeded.types.get(type_slug) or db_session.query(
                    CharacteristicType.id
                ).filter_by(slug=type_slug).scalar()
                product.characteristics.append(
                    ProductCharacteristic(characteristic_type_id=type_id, value=raw)
                )
            db_session.add(product)
            db_session.flush()
            seeded.products[product_slug] = product.id

        db_session.commit()
        return seeded

    return _add


CPU_CHARACTERISTICS = [
    ("socket", "Socket"),
    ("memory-support", "Memory support"),
    ("form-factor", "Form factor"),
]

CPU_PRODUCTS = [
    ("ryzen-5-7600", 20000, "AMD", {"socket": "AM5", "memory-support": "DDR5"}),
    ("ryzen-7-5800x", 10000, "AMD", {"socket": "AM4", "memory-support": "DDR4"}),
    (
        "core-i5-13400",
        30000,
        "Intel",
        {"socket": "LGA1700", "memory-support": "DDR4, DDR5"},
    ),
    (
        "core-i3-12100",
        "15000.50",
        "Intel",
        {"socket": "LGA1700", "memory-support": "DDR4"},
    ),
    ("oem-athlon", 12000, "", {"socket": "AM4"}),
]


@pytest.fixture
def catalog(add_category) -> SeededCatalog:
    """Processors with composite memory support, plus neighbouring categories.

    ``memory-support`` is reused by the ``memory`` category, whose DDR3 value
    never occurs among processors. ``form-factor`` is attached to processors
    but no processor carries it.
    """
    seeded = add_category("cpu", CPU_PRODUCTS, CPU_CHARACTERISTICS)
    add_category(
        "memory",
        [("kingston-ddr3-8gb", 3000, "Kingston", {"memory-support": "DDR3"})],
        [("memory-support", "Memory support")],
        seeded=seeded,
    )
    add_category("empty", seeded=seeded)
    add_category("storage", seeded=seeded)
    add_category(
        "ssd",
        [("samsung-990-pro", 14999.99, "Samsung", {"interface": "NVMe, PCIe 4.0"})],
        [("interface", "Interface")],
        parent_id=seeded.categories["storage"],
        seeded=seeded,
    )
    return seeded


@pytest.fixture
def sample_catalog_jsonl(tmp_path) -> str:
    """JSONL file with schema records followed by products."""
    records = [
        {"kind": "category", "slug": "gpu", "name": "Graphics cards"},
        {
            "kind": "characteristic",
            "slug": "memory-type",
            "name": "Memory type",
            "categories": [{"slug": "gpu", "position": 1}],
        },
        {
            "slug": "rtx-4070",
            "name": "GeForce RTX 4070",
            "category": "gpu",
            "price": 65000,
            "brand": "NVIDIA",
            "characteristics": {"memory-type": "GDDR6X"},
        },
        {
            "slug": "rx-7800-xt",
            "name": "Radeon RX 7800 XT",
            "category": "gpu",
            "price": "55000.00",
            "brand": "AMD",
            "characteristics": {"memory-type": ["GDDR6", "GDDR6X"]},
        },
        {"slug": "orphan", "name": "Orphan", "category": "nope", "price": 1},
    ]
    file_path = tmp_path / "catalog.jsonl"
    with open(file_path, "w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(record) + "\n")
        f.write("\n")
    return str(file_path)
