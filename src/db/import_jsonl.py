"""Import JSONL catalog data (categories, characteristics, products)."""

import json
import logging
import sys
from decimal import Decimal

from redis.exceptions import RedisError
from sqlalchemy import Engine, delete, select
from sqlalchemy.orm import Session

from src.cache.client import FilterCache, invalidate_category_filters
from src.db.models import (
    Category,
    CategoryFilterCharacteristic,
    CharacteristicType,
    Product,
    ProductCharacteristic,
)

logger = logging.getLogger(__name__)

BATCH_SIZE = 1000


class ImportRecordError(ValueError):
    """A record references a category that does not exist."""


def category_path(slug: str, parent: str | None = None) -> str:
    """Lookup key for a category: ``slug`` or ``parent/slug``."""
    return f"{parent}/{slug}" if parent else slug


def parse_category(data: dict, category_ids: dict[str, int]) -> Category:
    parent = data.get("parent")
    parent_id = None
    if parent:
        if parent not in category_ids:
            raise ImportRecordError(f"Unknown parent category '{parent}'")
        parent_id = category_ids[parent]
    return Category(
        slug=data["slug"],
        name=data.get("name") or data["slug"],
        parent_id=parent_id,
    )


def parse_characteristic(
    data: dict, category_ids: dict[str, int]
) -> CharacteristicType:
    """Parse a characteristic type and its category positions.

    Unknown categories in ``categories`` are skipped with a warning.
    """
    char_type = CharacteristicType(
        slug=data["slug"], name=data.get("name") or data["slug"]
    )
    for index, entry in enumerate(data.get("categories", [])):
        if isinstance(entry, str):
            entry = {"slug": entry}
        category_id = category_ids.get(entry["slug"])
        if category_id is None:
            logger.warning(
                "Skipping unknown category for characteristic",
                extra={"characteristic": char_type.slug, "category": entry["slug"]},
            )
            continue
        char_type.categories.append(
            CategoryFilterCharacteristic(
                category_id=category_id,
                position=entry.get("position", index),
            )
        )
    return char_type


def parse_product(
    data: dict,
    category_ids: dict[str, int],
    type_ids: dict[str, int],
) -> tuple[Product, list[ProductCharacteristic]]:
    """Parse a JSON record into SQLAlchemy model instances.

    Raises:
        ImportRecordError: If the record's category is unknown.
    """
    category = data.get("category")
    if category not in category_ids:
        raise ImportRecordError(f"Unknown category '{category}'")

    product = Product(
        category_id=category_ids[category],
        slug=data["slug"],
        name=data.get("name") or data["slug"],
        description=data.get("description"),
        price=Decimal(str(data.get("price", 0))),
        brand=(data.get("brand") or "").strip(),
    )

    characteristics = []
    for type_slug, value in (data.get("characteristics") or {}).items():
        if type_slug not in type_ids:
            logger.warning(
                "Skipping unknown characteristic",
                extra={"product": product.slug, "characteristic": type_slug},
            )
            continue
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        value = str(value).strip()
        if not value:
            continue
        characteristics.append(
            ProductCharacteristic(
                characteristic_type_id=type_ids[type_slug], value=value
            )
        )

    return product, characteristics


def merge_category(
    session: Session, data: dict, category_ids: dict[str, int]
) -> Category:
    """Insert a category, or update the name of the one at the same path."""
    parsed = parse_category(data, category_ids)
    existing_id = category_ids.get(category_path(parsed.slug, data.get("parent")))
    if existing_id is None:
        session.add(parsed)
        return parsed

    category = session.get(Category, existing_id)
    category.name = parsed.name
    return category


def merge_characteristic(
    session: Session,
    data: dict,
    category_ids: dict[str, int],
    type_ids: dict[str, int],
) -> CharacteristicType:
    """Insert a characteristic type, or update an existing one in place.

    Category positions of an existing type are updated and missing links
    added; links not mentioned in the record are kept.
    """
    parsed = parse_characteristic(data, category_ids)
    type_id = type_ids.get(parsed.slug)
    if type_id is None:
        session.add(parsed)
        return parsed

    char_type = session.get(CharacteristicType, type_id)
    char_type.name = parsed.name
    positions = {link.category_id: link.position for link in parsed.categories}
    for link in char_type.categories:
        if link.category_id in positions:
            link.position = positions.pop(link.category_id)
    for category_id, position in positions.items():
        char_type.categories.append(
            CategoryFilterCharacteristic(category_id=category_id, position=position)
        )
    return char_type


def load_category_ids(session: Session) -> dict[str, int]:
    categories = session.scalars(select(Category)).all()
    by_id = {c.id: c for c in categories}
    ids = {}
    for c in categories:
        parent = by_id.get(c.parent_id) if c.parent_id else None
        ids[category_path(c.slug, parent.slug if parent else None)] = c.id
    return ids


def load_type_ids(session: Session) -> dict[str, int]:
    rows = session.execute(select(CharacteristicType.slug, CharacteristicType.id))
    return {row.slug: row.id for row in rows}


def import_jsonl(
    file_path: str,
    replace_category: str | None = None,
    engine: Engine | None = None,
    cache: FilterCache | None = None,
) -> int:
    """
    Import JSONL file into the catalog database.

    Lines carry a ``kind`` of ``category``, ``characteristic`` or ``product``
    (the default). Schema records must precede the products that use them.

    Returns the number of products imported.
    """
    if engine is None:
        from src.db.database import init_db_sync, sync_engine

        init_db_sync()
        engine = sync_engine

    count = 0
    batch: list[Product] = []
    touched: set[int] = set()

    with Session(engine) as session:
        category_ids = load_category_ids(session)
        type_ids = load_type_ids(session)

        if replace_category:
            if replace_category not in category_ids:
                raise ImportRecordError(f"Unknown category '{replace_category}'")
            replace_id = category_ids[replace_category]
            replaced = select(Product.id).where(Product.category_id == replace_id)
            session.execute(
                delete(ProductCharacteristic).where(
                    ProductCharacteristic.product_id.in_(replaced)
                )
            )
            session.execute(delete(Product).where(Product.category_id == replace_id))
            session.commit()
            touched.add(replace_id)

        with open(file_path, encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                if not line.strip():
                    continue

                data = json.loads(line)
                kind = data.get("kind", "product")

                if kind == "category":
                    category = merge_category(session, data, category_ids)
                    session.flush()
                    parent = data.get("parent")
                    category_ids[category_path(category.slug, parent)] = category.id
                    continue

                if kind == "characteristic":
                    char_type = merge_characteristic(
                        session, data, category_ids, type_ids
                    )
                    session.flush()
                    type_ids[char_type.slug] = char_type.id
                    touched.update(c.category_id for c in char_type.categories)
                    continue

                try:
                    product, characteristics = parse_product(
                        data, category_ids, type_ids
                    )
                except ImportRecordError as exc:
                    logger.warning(
                        "Skipping product: %s", exc, extra={"line": line_no}
                    )
                    continue

                product.characteristics = characteristics
                batch.append(product)
                touched.add(product.category_id)
                count += 1

                if len(batch) >= BATCH_SIZE:
                    session.add_all(batch)
                    session.commit()
                    batch = []
                    print(f"Imported {count:,} records...", file=sys.stderr)

            # Final batch
            session.add_all(batch)
            session.commit()

    if cache is not None:
        for category_id in sorted(touched):
            try:
                invalidate_category_filters(cache, category_id)
            except RedisError:
                logger.warning(
                    "Could not invalidate cached filters",
                    extra={"category_id": category_id},
                )

    return count


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(description="Import JSONL catalog data")
    parser.add_argument("file", help="Path to catalog.jsonl")
    parser.add_argument(
        "--replace-category",
        help=(
            "Delete existing products of this category (slug or parent/slug) "
            "before importing. Useful for rerunning imports."
        ),
    )
    parser.add_argument(
        "--no-invalidate",
        action="store_true",
        help="Keep cached filters of the imported categories",
    )

    args = parser.parse_args()

    cache = None
    if not args.no_invalidate:
        from src.cache.client import filter_cache

        cache = filter_cache

    print(f"Importing {args.file}...", file=sys.stderr)
    count = import_jsonl(args.file, replace_category=args.replace_category, cache=cache)
    print(f"Done. Imported {count:,} products.", file=sys.stderr)


if __name__ == "__main__":
    main()
