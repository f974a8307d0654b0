from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from cardapio.core.database import Base


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(String(36), ForeignKey("orders.id"), index=True, nullable=False)

    # Snapshot do produto no momento do pedido (sem FK: o produto pode mudar ou sumir).
    product_id = Column(Integer, index=True, nullable=False)
    product_name = Column(String(60), nullable=False)
    product_price = Column(Numeric(10, 2), nullable=False)

    quantity = Column(Integer, nullable=False, default=1)
    notes = Column(Text, nullable=True)
    total_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    options = relationship(
        "OrderItemOption",
        back_populates="order_item",
        cascade="all, delete-orphan",
        order_by="OrderItemOption.id",
    )
