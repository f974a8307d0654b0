from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from cardapio.core.database import Base


class OptionGroup(Base):
    __tablename__ = "option_groups"

    id = Column(Integer, primary_key=True)
    name = Column(String(60), nullable=False)
    selection_type = Column(String(20), nullable=False, default="single")  # single / multiple
    required = Column(Boolean, default=False, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
