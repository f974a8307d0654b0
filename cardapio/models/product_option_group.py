from sqlalchemy import Column, ForeignKey, Index, Integer

from cardapio.core.database import Base


class ProductOptionGroup(Base):
    __tablename__ = "product_option_groups"
    __table_args__ = (
        Index(
            "ix_product_option_groups_product_group",
            "product_id",
            "option_group_id",
            unique=True,
        ),
    )

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    option_group_id = Column(Integer, ForeignKey("option_groups.id"), nullable=False)
