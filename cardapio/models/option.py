from sqlalchemy import Boolean, Column, ForeignKey, Integer, Numeric, String

from cardapio.core.database import Base


class Option(Base):
    __tablename__ = "options"

    id = Column(Integer, primary_key=True)
    option_group_id = Column(Integer, ForeignKey("option_groups.id"), index=True, nullable=False)
    name = Column(String(60), nullable=False)
    additional_price = Column(Numeric(10, 2), default=0, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
