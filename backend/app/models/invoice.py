"""Invoice model for billing."""

import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class InvoiceStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELED = "CANCELED"


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_invoices_amount_non_negative"),)

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    number = Column(String, nullable=True)

    status = Column(String(20), default=InvoiceStatus.PENDING.value, nullable=False)
    amount = Column(Float, default=0.0, nullable=False)
    description = Column(Text, nullable=True)
    file_url = Column(String(512), nullable=True)

    due_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    client = relationship("Client", back_populates="invoices")
    work_hour_links = relationship("InvoiceWorkHour", back_populates="invoice", cascade="all, delete-orphan")
    work_hours = relationship(
        "WorkHour",
        secondary="invoice_work_hours",
        viewonly=True,
        order_by="WorkHour.date",
    )
