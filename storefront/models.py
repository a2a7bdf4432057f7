from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from .db import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    # passlib hash
    password = Column(String, nullable=False)
    # 'customer' or 'admin'; public registration only ever creates customers
    role = Column(String, nullable=False, default="customer")
    created_at = Column(DateTime, server_default=func.now())

    orders = relationship("Order", back_populates="user")

class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    # minor currency units
    price = Column(Integer, nullable=False)
    # Plain integer on purpose: deleting a category leaves products pointing at it
    category_id = Column(Integer, nullable=True, index=True)
    description = Column(Text, nullable=False, default="")
    image = Column(String, nullable=False, default="")
    active = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, server_default=func.now())

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    # NULL for guest orders
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    total = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default="PENDING")
    reference = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # snapshot, not a live reference: products may be edited or deleted later
    product_id = Column(Integer, nullable=False)
    qty = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")
