import uuid
from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship
from .database import Base, utcnow


class Recipe(Base):
    """Recipe - a single-level list of raw-material ingredients"""
    __tablename__ = "recipes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, index=True)
    product_type = Column(Text, nullable=True)  # 'cookie' | 'cake' | ...
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.position",
    )

    @property
    def to_schema(self):
        """Convert Recipe model to schema dictionary format"""
        return {
            "id": self.id,
            "name": self.name,
            "product_type": self.product_type,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "ingredients": [
                {"name": ing.ingredient_name, "quantity": float(ing.quantity), "unit": ing.unit}
                for ing in self.ingredients
            ],
        }


class RecipeIngredient(Base):
    __tablename__ = "recipe_ingredients"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_recipe_ingredients_quantity_positive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    recipe_id = Column(Uuid, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    # matched case-insensitively against RAW_MATERIAL inventory item names
    ingredient_name = Column(String, nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String, nullable=False)  # 'g', 'kg', 'ml', 'lt', 'cc', 'unit'

    recipe = relationship("Recipe", back_populates="ingredients")
