from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Uuid

from ..database import Base

# quantity is a 32-bit INTEGER
QUANTITY_MAX = 2_147_483_647


class InventoryRecord(Base):
    __tablename__ = "inventory"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
    )

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    item_id = Column(Uuid(as_uuid=True), ForeignKey("items.id", ondelete="CASCADE"), primary_key=True, index=True)

    quantity = Column(Integer, nullable=False, default=0)
