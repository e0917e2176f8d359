"""
门店相关的Pydantic模型
"""
from pydantic import BaseModel, Field
from typing import Optional


class StoreBase(BaseModel):
    """门店基础模型"""
    name: str = Field(..., description="门店名称", max_length=100)
    slug: str = Field(..., description="门店标识", pattern=r"^[a-z0-9\-]{2,100}$")
    address: Optional[str] = Field(None, description="地址", max_length=255)
    is_active: bool = Field(True, description="是否营业")


class StoreCreate(StoreBase):
    pass


class StoreUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None


class StoreResponse(StoreBase):
    id: int

    class Config:
        from_attributes = True
