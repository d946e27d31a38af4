"""
SQLAlchemy ORM models for persistent storage.

Card sets and cards are a normalized local copy of the external catalog.
Cards are keyed by the catalog's stable identifier.
"""

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from cardvault.models.status import DownloadStatus


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CardSetDB(Base):
    """
    A catalog set downloaded into the local collection.

    `images_downloaded` is always a recomputed aggregate (cards with a stored
    front image), never a running total.
    """

    __tablename__ = "card_sets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(16), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    released_at: Mapped[date | None] = mapped_column(Date, nullable=True)
    card_count: Mapped[int] = mapped_column(Integer, default=0)
    scryfall_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    set_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    parent_set_code: Mapped[str | None] = mapped_column(String(16), nullable=True, index=True)

    download_status: Mapped[DownloadStatus] = mapped_column(
        Enum(
            DownloadStatus,
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        default=DownloadStatus.PENDING,
    )
    images_downloaded: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    cards: Mapped[list["CardDB"]] = relationship(
        back_populates="card_set", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<CardSetDB(code={self.code}, status={self.download_status.value})>"


class CardDB(Base):
    """
    A single catalog card.

    Image paths are relative to the asset store root and are only set after
    the corresponding face has been downloaded.
    """

    __tablename__ = "cards"

    # Scryfall UUID
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    card_set_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("card_sets.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255), index=True)
    collector_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    rarity: Mapped[str | None] = mapped_column(String(20), nullable=True)
    mana_cost: Mapped[str | None] = mapped_column(String(100), nullable=True)
    type_line: Mapped[str | None] = mapped_column(String(255), nullable=True)
    oracle_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    image_uris: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    back_image_uris: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    image_path: Mapped[str | None] = mapped_column(String(255), nullable=True)
    back_image_path: Mapped[str | None] = mapped_column(String(255), nullable=True)

    foil: Mapped[bool] = mapped_column(Boolean, default=False)
    nonfoil: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    card_set: Mapped["CardSetDB"] = relationship(back_populates="cards")

    @property
    def double_faced(self) -> bool:
        """A card is double-faced iff it carries back image references."""
        return bool(self.back_image_uris)

    def __repr__(self) -> str:
        return f"<CardDB(id={self.id}, name={self.name})>"
