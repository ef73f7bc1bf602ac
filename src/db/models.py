"""SQLAlchemy models for the PC hardware catalog."""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE")
    )

    parent: Mapped["Category | None"] = relationship(
        remote_side="Category.id", back_populates="children"
    )
    children: Mapped[list["Category"]] = relationship(back_populates="parent")
    products: Mapped[list["Product"]] = relationship(back_populates="category")
    filter_characteristics: Mapped[list["CategoryFilterCharacteristic"]] = (
        relationship(back_populates="category", cascade="all, delete-orphan")
    )

    __table_args__ = (
        UniqueConstraint("parent_id", "slug", name="uq_categories_parent_slug"),
        Index("ix_categories_slug", "slug"),
    )


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # Empty string means "no brand"; such products never appear in brand facets.
    brand: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    category: Mapped["Category"] = relationship(back_populates="products")
    characteristics: Mapped[list["ProductCharacteristic"]] = relationship(
        back_populates="product", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_products_category_id", "category_id"),
        Index("ix_products_brand", "brand"),
        Index("ix_products_price", "price"),
    )


class CharacteristicType(Base):
    __tablename__ = "characteristic_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    categories: Mapped[list["CategoryFilterCharacteristic"]] = relationship(
        back_populates="characteristic_type", cascade="all, delete-orphan"
    )


class CategoryFilterCharacteristic(Base):
    """Association of a filterable characteristic with a category."""

    __tablename__ = "category_filter_characteristics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )
    characteristic_type_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("characteristic_types.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    category: Mapped["Category"] = relationship(
        back_populates="filter_characteristics"
    )
    characteristic_type: Mapped["CharacteristicType"] = relationship(
        back_populates="categories"
    )

    __table_args__ = (
        UniqueConstraint(
            "category_id",
            "characteristic_type_id",
            name="uq_category_filter_characteristics_pair",
        ),
    )


class ProductCharacteristic(Base):
    __tablename__ = "product_characteristics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    characteristic_type_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("characteristic_types.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Either a single token or a composite value such as "DDR4, DDR5".
    value: Mapped[str] = mapped_column(String(255), nullable=False)

    product: Mapped["Product"] = relationship(back_populates="characteristics")

    __table_args__ = (
        Index("ix_product_characteristics_product_id", "product_id"),
        Index(
            "ix_product_characteristics_type_value",
            "characteristic_type_id",
            "value",
        ),
    )
