"""ORM tables for the catalog and orders.

Orders carry no total column: totals are always derived from the items.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .database import Base


class BookRecord(Base):
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=False)
    price = Column(Float, nullable=False)

    __table_args__ = (CheckConstraint("price >= 0", name="books_price_non_negative"),)

    def __repr__(self):
        return f"<BookRecord(id={self.id}, title='{self.title}', price={self.price})>"


class OrderRecord(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    items = relationship("OrderItemRecord", back_populates="order", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<OrderRecord(id={self.id}, customer_id={self.customer_id})>"


class OrderItemRecord(Base):
    __tablename__ = "orderitems"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("books.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)

    order = relationship("OrderRecord", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="orderitems_quantity_positive"),
        CheckConstraint("price >= 0", name="orderitems_price_non_negative"),
    )
