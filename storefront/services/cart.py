from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Session

from storefront.db.models import Cart, CartItem, Coupon, Product, User
from storefront.core.errors import NotFoundError, ConflictError
from storefront.core.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


def money(value) -> Decimal:
    return Decimal(value).quantize(CENT)


def unit_price(product: Product) -> Decimal:
    if product.price_after_discount is not None:
        return money(product.price_after_discount)
    return money(product.price)


def recalc_totals(cart: Cart) -> None:
    total = sum((money(i.price) * i.quantity for i in cart.items), Decimal("0.00"))
    cart.total_price = money(total)
    if cart.discount is not None:
        discount = Decimal(cart.discount)
        cart.total_price_after_discount = money(total - total * discount / 100)


def get_user_cart(db: Session, user: User) -> Cart | None:
    return db.query(Cart).filter(Cart.user_id == user.id).first()


def _require_cart(db: Session, user: User) -> Cart:
    cart = get_user_cart(db, user)
    if not cart:
        raise NotFoundError("Cart was not found")
    return cart


def _require_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product was not found")
    return product


def _line(cart: Cart, product_id: int) -> CartItem | None:
    return next((i for i in cart.items if i.product_id == product_id), None)


def add_product(db: Session, user: User, product_id: int, quantity: int) -> Cart:
    product = _require_product(db, product_id)
    cart = get_user_cart(db, user)
    if not cart:
        cart = Cart(user_id=user.id, total_price=Decimal("0.00"))
        db.add(cart)

    line = _line(cart, product_id)
    wanted = quantity + (line.quantity if line else 0)
    if wanted > product.quantity:
        raise ConflictError(f"Only {product.quantity} items of {product.title} in stock")

    if line:
        line.quantity = wanted
        line.price = unit_price(product)
    else:
        cart.items.append(CartItem(product_id=product_id, quantity=quantity, price=unit_price(product)))

    recalc_totals(cart)
    db.commit(); db.refresh(cart)
    logger.info("User %s added product %s x%s to cart %s", user.id, product_id, quantity, cart.id)
    return cart


def update_quantity(db: Session, user: User, product_id: int, quantity: int) -> Cart:
    cart = _require_cart(db, user)
    line = _line(cart, product_id)
    if not line:
        raise NotFoundError("Product is not in the cart")
    product = _require_product(db, product_id)
    if quantity > product.quantity:
        raise ConflictError(f"Only {product.quantity} items of {product.title} in stock")
    line.quantity = quantity
    recalc_totals(cart)
    db.commit(); db.refresh(cart)
    return cart


def remove_product(db: Session, user: User, product_id: int) -> Cart:
    cart = _require_cart(db, user)
    line = _line(cart, product_id)
    if not line:
        raise NotFoundError("Product is not in the cart")
    cart.items.remove(line)
    recalc_totals(cart)
    db.commit(); db.refresh(cart)
    return cart


def apply_coupon(db: Session, user: User, code: str) -> Cart:
    coupon = (
        db.query(Coupon)
        .filter(Coupon.code == code, Coupon.expires > datetime.utcnow())
        .first()
    )
    if not coupon:
        raise NotFoundError("Coupon is not valid or has expired")
    cart = _require_cart(db, user)
    # discount is copied so later coupon edits never reprice this cart
    cart.discount = money(coupon.discount)
    recalc_totals(cart)
    db.commit(); db.refresh(cart)
    logger.info("Coupon %s applied to cart %s", code, cart.id)
    return cart
