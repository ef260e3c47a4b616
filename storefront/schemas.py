from pydantic import BaseModel, EmailStr, Field, ConfigDict
from datetime import datetime
from typing import Optional, List, Literal

class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

# --- auth / users ---
class SignUpPayload(BaseModel):
    name: str = Field(min_length=2, max_length=120)
    email: EmailStr
    password: str = Field(min_length=8)

class SignInPayload(BaseModel):
    email: EmailStr
    password: str

class UserRead(ORMModel):
    id: int
    name: str
    email: EmailStr
    role: str

class UserCreate(SignUpPayload):
    role: Literal['user', 'admin'] = 'user'

class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=120)
    email: Optional[EmailStr] = None
    role: Optional[Literal['user', 'admin']] = None

class PasswordChange(BaseModel):
    password: str = Field(min_length=8)

class AuthResponse(BaseModel):
    message: str = 'success'
    user: UserRead
    token: str
    token_type: str = 'bearer'

# --- catalog ---
class CategoryCreate(BaseModel):
    name: str = Field(min_length=2, max_length=120)
class CategoryRead(ORMModel):
    id: int
    name: str
    slug: str

class SubCategoryCreate(BaseModel):
    name: str = Field(min_length=2, max_length=120)
class SubCategoryRead(ORMModel):
    id: int
    name: str
    slug: str
    category_id: int

class BrandCreate(BaseModel):
    name: str = Field(min_length=2, max_length=120)
class BrandRead(ORMModel):
    id: int
    name: str
    slug: str

class ProductBase(BaseModel):
    title: str = Field(min_length=2, max_length=240)
    description: Optional[str] = ''
    price: float = Field(ge=0)
    price_after_discount: Optional[float] = Field(default=None, ge=0)
    quantity: int = Field(default=0, ge=0)
    category_id: Optional[int] = None
    subcategory_id: Optional[int] = None
    brand_id: Optional[int] = None
class ProductCreate(ProductBase): pass
class ProductUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=2, max_length=240)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    price_after_discount: Optional[float] = Field(default=None, ge=0)
    quantity: Optional[int] = Field(default=None, ge=0)
    category_id: Optional[int] = None
    subcategory_id: Optional[int] = None
    brand_id: Optional[int] = None
class ProductRead(ProductBase, ORMModel):
    id: int
    slug: str
    # checkouts may oversell, stock is reported as stored
    quantity: int
    sold: int
    rating_avg: float
    rating_count: int

class CouponCreate(BaseModel):
    code: str = Field(min_length=3, max_length=64)
    discount: float = Field(gt=0, le=100)
    expires: datetime
class CouponUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=3, max_length=64)
    discount: Optional[float] = Field(default=None, gt=0, le=100)
    expires: Optional[datetime] = None
class CouponRead(ORMModel):
    id: int
    code: str
    discount: float
    expires: datetime

class ReviewCreate(BaseModel):
    product_id: int
    text: str = Field(min_length=1)
    rate: int = Field(ge=1, le=5)
class ReviewUpdate(BaseModel):
    text: Optional[str] = Field(default=None, min_length=1)
    rate: Optional[int] = Field(default=None, ge=1, le=5)
class ReviewRead(ORMModel):
    id: int
    product_id: int
    user_id: int
    text: str
    rate: int

# --- wishlist / addresses ---
class WishlistChange(BaseModel):
    product_id: int

class AddressCreate(BaseModel):
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    phone: str = Field(min_length=3, max_length=32)
class AddressRead(AddressCreate, ORMModel):
    id: int

# --- cart ---
class CartItemAdd(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)

class CartItemUpdate(BaseModel):
    quantity: int = Field(ge=1)

class ApplyCoupon(BaseModel):
    code: str

class CartItemRead(ORMModel):
    product_id: int
    quantity: int
    price: float

class CartRead(ORMModel):
    id: int
    user_id: int
    items: List[CartItemRead] = []
    total_price: float
    discount: Optional[float] = None
    total_price_after_discount: Optional[float] = None

# --- orders ---
class ShippingAddress(BaseModel):
    street: str
    city: str
    phone: str

class CashOrderPayload(BaseModel):
    shipping_address: ShippingAddress

class CheckoutPayload(BaseModel):
    shipping_address: ShippingAddress

class OrderItemRead(ORMModel):
    product_id: int
    quantity: int
    price: float

class OrderRead(ORMModel):
    id: int
    user_id: int
    items: List[OrderItemRead]
    total_order_price: float
    shipping_address: Optional[dict] = None
    payment_method: Literal['cash', 'card']
    is_paid: bool
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

class OrderResponse(BaseModel):
    message: str = 'success'
    order: OrderRead
