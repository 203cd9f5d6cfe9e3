from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .db import Base

ITEM_IN_STORE = "in-store"
ITEM_RESERVED = "reserved"
ITEM_SOLD = "sold"
ITEM_RETURNED = "returned"
ITEM_STATUSES = (ITEM_IN_STORE, ITEM_RESERVED, ITEM_SOLD, ITEM_RETURNED)
ACTIVE_ITEM_STATUSES = (ITEM_IN_STORE, ITEM_RESERVED)

PLAN_ACTIVE = "active"
PLAN_COMPLETED = "completed"
PLAN_FREQUENCIES = ("weekly", "biweekly", "monthly", "quarterly")


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    tax_id = Column(String(50), nullable=True)
    bank_name = Column(String(200), nullable=True)
    bank_account_number = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    items = relationship("Item", back_populates="vendor")
    payouts = relationship("VendorPayout", back_populates="vendor")


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    billing_address = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    payments = relationship("ClientPayment", back_populates="client")
    installment_plans = relationship("InstallmentPlan", back_populates="client")


class Brand(Base):
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, unique=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    items = relationship("Item", back_populates="brand")


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, unique=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    items = relationship("Item", back_populates="category")


class Item(Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    title = Column(String(200), nullable=True)
    model = Column(String(200), nullable=True)
    serial_no = Column(String(100), nullable=True)
    condition = Column(String(50), nullable=True)
    min_cost = Column(Numeric(12, 2), nullable=True)
    max_cost = Column(Numeric(12, 2), nullable=True)
    min_sales_price = Column(Numeric(12, 2), nullable=True)
    max_sales_price = Column(Numeric(12, 2), nullable=True)
    status = Column(Enum(*ITEM_STATUSES, name="item_status"), nullable=False, default=ITEM_IN_STORE)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    vendor = relationship("Vendor", back_populates="items")
    brand = relationship("Brand", back_populates="items")
    category = relationship("Category", back_populates="items")
    payments = relationship("ClientPayment", back_populates="item")
    payouts = relationship("VendorPayout", back_populates="item")
    expenses = relationship("Expense", back_populates="item")

    @property
    def sale_price(self) -> Decimal:
        """Price at which cumulative client payments mark the item sold."""
        return Decimal(self.min_sales_price or self.max_sales_price or 0)

    @property
    def unit_cost(self) -> Decimal:
        for cost in (self.min_cost, self.max_cost):
            if cost is not None:
                return Decimal(cost)
        return Decimal("0")


class ClientPayment(Base):
    __tablename__ = "client_payments"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    installment_plan_id = Column(Integer, ForeignKey("installment_plans.id"), nullable=True)
    payment_method = Column(String(50), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    paid_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    item = relationship("Item", back_populates="payments")
    client = relationship("Client", back_populates="payments")
    installment_plan = relationship("InstallmentPlan", back_populates="payments")


class VendorPayout(Base):
    __tablename__ = "vendor_payouts"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    paid_at = Column(DateTime, nullable=False)
    bank_account = Column(String(100), nullable=True)
    transfer_id = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    item = relationship("Item", back_populates="payouts")
    vendor = relationship("Vendor", back_populates="payouts")


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=True)
    expense_type = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    incurred_at = Column(DateTime, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    item = relationship("Item", back_populates="expenses")


class InstallmentPlan(Base):
    __tablename__ = "installment_plans"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    installment_amount = Column(Numeric(12, 2), nullable=False)
    frequency = Column(Enum(*PLAN_FREQUENCIES, name="installment_frequency"), nullable=False, default="monthly")
    start_date = Column(Date, nullable=False)
    next_due_date = Column(Date, nullable=False)
    remaining_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(Enum(PLAN_ACTIVE, PLAN_COMPLETED, name="installment_status"), nullable=False, default=PLAN_ACTIVE)
    reminder_sent = Column(Boolean, default=False, nullable=False)
    last_reminder_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    item = relationship("Item")
    client = relationship("Client", back_populates="installment_plans")
    payments = relationship("ClientPayment", back_populates="installment_plan")
