from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProductPayload(BaseModel):
    name: str
    price: Decimal
    category_id: Optional[int] = None
    description: Optional[str] = None
    photo_url: Optional[str] = None
    active: bool = True
    sort_order: int = 0
    option_group_ids: Optional[list[int]] = None


class OptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    additional_price: float


class OptionGroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    selection_type: str
    required: bool
    options: list[OptionResponse] = Field(default_factory=list)


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: float
    category_id: int
    active: bool
    sort_order: int
    description: Optional[str] = None
    photo_url: Optional[str] = None
    option_groups: list[OptionGroupResponse] = Field(default_factory=list)


class CategoryPayload(BaseModel):
    name: str
    active: Optional[bool] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    sort_order: int
    active: bool


class CategoryReorderPayload(BaseModel):
    ordered_ids: list[int]


class CategoryDeleteResponse(BaseModel):
    id: int
    deactivated: bool


class OptionGroupPayload(BaseModel):
    name: str
    selection_type: str
    required: bool = False
    sort_order: int = 0


class CatalogOptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    option_group_id: int
    name: str
    additional_price: float
    active: bool
    sort_order: int


class OptionGroupAdminResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    selection_type: str
    required: bool
    sort_order: int
    options: list[CatalogOptionResponse] = Field(default_factory=list)


class OptionGroupDeleteResponse(BaseModel):
    id: int
    deleted_options_count: int


class OptionPayload(BaseModel):
    name: str
    option_group_id: Optional[int] = None
    additional_price: Decimal = Decimal("0")
    active: bool = True
    sort_order: int = 0


class OptionDeleteResponse(BaseModel):
    id: int
    deactivated: bool


class ProductOptionGroupsPayload(BaseModel):
    option_group_ids: list[int] = Field(default_factory=list)
