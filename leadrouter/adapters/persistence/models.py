"""SQLAlchemy ORM models — maps to PostgreSQL tables."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leadrouter.adapters.persistence.database import Base


class SalesWorkerModel(Base):
    __tablename__ = "sales_employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    daily_lead_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_lead_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_assigned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    round_robin_order: Mapped[int | None] = mapped_column(Integer, nullable=True)

    leads: Mapped[list["LeadModel"]] = relationship(back_populates="sales_employee")

    __table_args__ = (
        CheckConstraint("daily_lead_count >= 0", name="ck_sales_daily_nonneg"),
        CheckConstraint("total_lead_count >= 0", name="ck_sales_total_nonneg"),
        Index("idx_sales_employees_active", "is_active"),
    )


class AllocationRuleModel(Base):
    __tablename__ = "sales_allocation_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rule_code: Mapped[str] = mapped_column(String(50), nullable=False)
    customer_group: Mapped[str | None] = mapped_column(String(200), nullable=True)
    product_group_ids: Mapped[list[int]] = mapped_column(
        ARRAY(Integer), nullable=False, default=list
    )
    assigned_sales_ids: Mapped[list[int]] = mapped_column(
        ARRAY(Integer), nullable=False, default=list
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class LeadModel(Base):
    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    customer_group: Mapped[str | None] = mapped_column(String(200), nullable=True)
    interested_product_group_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="new")
    is_converted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    assigned_sales_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("sales_employees.id"), nullable=True
    )
    assignment_method: Mapped[str] = mapped_column(String(20), nullable=False, default="none")
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    sales_employee: Mapped["SalesWorkerModel | None"] = relationship(back_populates="leads")
    assignment_logs: Mapped[list["AssignmentLogModel"]] = relationship(back_populates="lead")

    __table_args__ = (
        Index("idx_leads_unassigned", "assigned_sales_id", "status", "created_at"),
    )


class AssignmentLogModel(Base):
    __tablename__ = "assignment_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lead_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False
    )
    sales_employee_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sales_employees.id"), nullable=False
    )
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    lead: Mapped["LeadModel"] = relationship(back_populates="assignment_logs")

    __table_args__ = (
        Index("idx_assignment_logs_lead", "lead_id"),
        Index("idx_assignment_logs_sales", "sales_employee_id"),
    )
