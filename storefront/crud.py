from typing import Iterable, List

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from . import auth, models, schemas
from .exceptions import DuplicateEmailError

STOREFRONT_LIMIT = 30
RECOMMENDATION_LIMIT = 4
ADMIN_ORDER_LIMIT = 30


# -------------------- Users --------------------

def create_user(db: Session, email: str, password: str, role: str = auth.ROLE_CUSTOMER) -> models.User:
    db_user = models.User(email=email, password=auth.hash_password(password), role=role)
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateEmailError(email) from e
    db.refresh(db_user)
    return db_user


def get_user(db: Session, user_id: int) -> models.User | None:
    return db.get(models.User, user_id)


def authenticate(db: Session, email: str, password: str) -> models.User | None:
    user = db.query(models.User).filter(models.User.email == email).first()
    if not user or not auth.verify_password(password, user.password):
        return None
    return user


# -------------------- Catalog --------------------

def list_active_products(db: Session, limit: int = STOREFRONT_LIMIT) -> List[models.Product]:
    return (
        db.query(models.Product)
        .filter(models.Product.active == 1)
        .order_by(models.Product.id.desc())
        .limit(limit)
        .all()
    )


def get_product(db: Session, product_id: int) -> models.Product | None:
    return db.get(models.Product, product_id)


def get_active_product(db: Session, product_id: int) -> models.Product | None:
    product = get_product(db, product_id)
    if not product or not product.active:
        return None
    return product


def list_recommendations(db: Session, product_id: int, limit: int = RECOMMENDATION_LIMIT) -> List[models.Product]:
    return (
        db.query(models.Product)
        .filter(models.Product.id != product_id, models.Product.active == 1)
        .order_by(models.Product.id)
        .limit(limit)
        .all()
    )


def list_categories(db: Session) -> List[models.Category]:
    return db.query(models.Category).order_by(models.Category.id).all()


def get_category(db: Session, category_id: int) -> models.Category | None:
    return db.get(models.Category, category_id)


def list_category_products(db: Session, category_id: int) -> List[models.Product]:
    return (
        db.query(models.Product)
        .filter(models.Product.category_id == category_id, models.Product.active == 1)
        .order_by(models.Product.id)
        .all()
    )


# -------------------- Admin CRUD --------------------

def list_products(db: Session) -> List[models.Product]:
    return db.query(models.Product).order_by(models.Product.id).all()


def create_product(db: Session, data: schemas.ProductIn) -> models.Product:
    product = models.Product(
        name=data.name,
        price=data.price,
        category_id=data.category_id,
        image=data.image,
        description=data.description,
        active=1 if data.active else 0,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def update_product(db: Session, product_id: int, data: schemas.ProductIn) -> models.Product | None:
    product = db.get(models.Product, product_id)
    if not product:
        return None
    product.name = data.name
    product.price = data.price
    product.category_id = data.category_id
    product.image = data.image
    product.description = data.description
    product.active = 1 if data.active else 0
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: int) -> bool:
    product = db.get(models.Product, product_id)
    if not product:
        return False
    db.delete(product)
    db.commit()
    return True


def create_category(db: Session, data: schemas.CategoryIn) -> models.Category:
    category = models.Category(name=data.name)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def update_category(db: Session, category_id: int, data: schemas.CategoryIn) -> models.Category | None:
    category = db.get(models.Category, category_id)
    if not category:
        return None
    category.name = data.name
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: int) -> bool:
    # Products keep their category_id; nothing cascades.
    category = db.get(models.Category, category_id)
    if not category:
        return False
    db.delete(category)
    db.commit()
    return True


# -------------------- Orders --------------------

def list_orders(db: Session, limit: int = ADMIN_ORDER_LIMIT) -> List[models.Order]:
    return db.query(models.Order).order_by(models.Order.id.desc()).limit(limit).all()


def get_order(db: Session, order_id: int) -> models.Order | None:
    return db.get(models.Order, order_id)


def get_order_by_reference(db: Session, reference: str) -> models.Order | None:
    return db.query(models.Order).filter(models.Order.reference == reference).first()


def update_order_status(db: Session, order_id: int, status: str) -> models.Order | None:
    # Admin may set any value; there is no status state machine.
    order = db.get(models.Order, order_id)
    if not order:
        return None
    order.status = status
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


def create_paid_order(db: Session, lines: Iterable[schemas.CartLine], user_id: int | None, reference: str) -> models.Order:
    """Write a PAID order and one item per cart line in a single transaction.

    The total is recomputed from the lines; the unit price of each item is the
    price captured when the line entered the cart.
    """
    lines = list(lines)
    order = models.Order(
        user_id=user_id,
        total=sum(line.price * line.qty for line in lines),
        status="PAID",
        reference=reference,
    )
    try:
        db.add(order)
        db.flush()
        for line in lines:
            db.add(models.OrderItem(order_id=order.id, product_id=line.product_id, qty=line.qty, price=line.price))
        db.commit()
    except Exception:
        # Order and items are written together or not at all
        db.rollback()
        raise
    db.refresh(order)
    return order
