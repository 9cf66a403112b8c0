import uuid
from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship
from .database import Base, utcnow

PENDING = "PENDING"
COMPLETED = "COMPLETED"


class SalesOrder(Base):
    __tablename__ = "sales_orders"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_sales_orders_quantity_positive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_name = Column(String, nullable=False)
    recipe_id = Column(Uuid, ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True, index=True)
    product_type = Column(Text, nullable=True)
    product_description = Column(Text, nullable=False, default="")
    quantity = Column(Integer, nullable=False)
    order_date = Column(Date, nullable=False, index=True)
    status = Column(Text, nullable=False, default=PENDING, index=True)  # PENDING|COMPLETED

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    recipe = relationship("Recipe")

    __mapper_args__ = {"version_id_col": version}

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "recipe_id": self.recipe_id,
            "product_type": self.product_type,
            "product_description": self.product_description,
            "quantity": int(self.quantity),
            "order_date": self.order_date.isoformat() if self.order_date else None,
            "status": self.status,
            "version": self.version,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
