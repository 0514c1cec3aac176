"""Join rows recording which work-hour entries an invoice bills."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class InvoiceWorkHour(Base):
    __tablename__ = "invoice_work_hours"
    __table_args__ = (UniqueConstraint("invoice_id", "work_hour_id", name="uq_invoice_work_hour"),)

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    work_hour_id = Column(Integer, ForeignKey("work_hours.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    invoice = relationship("Invoice", back_populates="work_hour_links")
    work_hour = relationship("WorkHour", back_populates="invoice_links")
