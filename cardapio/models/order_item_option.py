from sqlalchemy import Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from cardapio.core.database import Base


class OrderItemOption(Base):
    __tablename__ = "order_item_options"

    id = Column(Integer, primary_key=True)
    order_item_id = Column(Integer, ForeignKey("order_items.id"), index=True, nullable=False)
    option_group_id = Column(Integer, nullable=False)
    option_group_name = Column(String(60), nullable=False)
    option_id = Column(Integer, nullable=False)
    option_name = Column(String(60), nullable=False)
    additional_price = Column(Numeric(10, 2), nullable=False, default=0)

    order_item = relationship("OrderItem", back_populates="options")
