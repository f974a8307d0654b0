import uuid

from sqlalchemy import Column, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship

from cardapio.core.database import Base


def _new_order_id() -> str:
    return str(uuid.uuid4())


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_new_order_id)

    order_type = Column(String(20), nullable=False)  # Retirada / Consumo no Local
    customer_name = Column(String(100), nullable=True)
    # apenas dígitos; formatação só na exibição
    customer_phone = Column(String(11), index=True, nullable=True)
    table_number = Column(Integer, nullable=True)

    # Recebido / Em Preparo / Pronto
    status = Column(String(20), default="Recebido", index=True, nullable=False)

    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    coupon_code = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), index=True, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
