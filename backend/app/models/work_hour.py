"""Work-hour entry model."""

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class WorkHour(Base):
    __tablename__ = "work_hours"
    __table_args__ = (CheckConstraint("hours > 0", name="ck_work_hours_hours_positive"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=True)
    hours = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    owner = relationship("User", back_populates="work_hours")
    client = relationship("Client", back_populates="work_hours")
    project = relationship("Project", back_populates="work_hours")
    # Deleting an entry removes its billing links rather than orphaning them.
    invoice_links = relationship("InvoiceWorkHour", back_populates="work_hour", cascade="all, delete-orphan")
