import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Float, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import validates

from ..database import Base, utcnow

RAW_MATERIAL = "RAW_MATERIAL"
FINISHED_GOOD = "FINISHED_GOOD"

NAME_INDEX = "ux_inventory_items_kind_name"


def normalize_name(name: str) -> str:
    return (name or "").strip().lower()


class InventoryItem(Base):
    __tablename__ = "inventory_items"
    __table_args__ = (
        # normalized-name index: one item per (kind, case-folded name)
        UniqueConstraint("kind", "normalized_name", name=NAME_INDEX),
        CheckConstraint("stock_count >= 0", name="ck_inventory_items_stock_non_negative"),
        CheckConstraint("unit_value > 0", name="ck_inventory_items_unit_value_positive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # 'RAW_MATERIAL' | 'FINISHED_GOOD'
    kind = Column(Text, nullable=False, index=True)

    name = Column(String, nullable=False)
    normalized_name = Column(String, nullable=False, index=True)

    # base-unit content per stocked package, e.g. 500 for a 500 g bag
    unit_value = Column(Float, nullable=False, default=1.0)
    unit_type = Column(Text, nullable=False, default="unit")
    stock_count = Column(Float, nullable=False, default=0.0)

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __mapper_args__ = {"version_id_col": version}

    @validates("name")
    def _sync_normalized_name(self, key, value):
        self.normalized_name = normalize_name(value)
        return value

    @property
    def total_base_quantity(self) -> float:
        return float(self.stock_count) * float(self.unit_value)

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "unit_value": float(self.unit_value),
            "unit_type": self.unit_type,
            "stock_count": float(self.stock_count),
            "total_base_quantity": self.total_base_quantity,
            "version": self.version,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
