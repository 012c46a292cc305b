"""SQLAlchemy models for the claims records the export pipeline reads and writes."""

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import Date, ForeignKey, Index, String, Text, TIMESTAMP
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from estimate_export.core.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Organization(Base):
    """Tenant that owns leads, claims and exports."""

    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()"
    )

    users: Mapped[list["User"]] = relationship("User", back_populates="organization")


class User(Base):
    """Supabase-authenticated user and the organization they work in."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    supabase_user_id: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String, nullable=True)
    org_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("organizations.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()"
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()", onupdate=datetime.utcnow
    )

    organization: Mapped["Organization | None"] = relationship(
        "Organization", back_populates="users"
    )


class Contact(Base):
    """Homeowner / insured contact linked to a lead."""

    __tablename__ = "contacts"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    org_id: Mapped[str] = mapped_column(String, ForeignKey("organizations.id"), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String, nullable=True)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    street: Mapped[str | None] = mapped_column(String, nullable=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    state: Mapped[str | None] = mapped_column(String, nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()"
    )

    @property
    def full_name(self) -> str:
        parts = [p.strip() for p in (self.first_name, self.last_name) if p and p.strip()]
        return " ".join(parts)

    @property
    def address(self) -> str:
        """Single-line mailing address, skipping blank parts."""
        state_zip = " ".join(p for p in (self.state, self.zip_code) if p)
        parts = [p for p in (self.street, self.city, state_zip) if p]
        return ", ".join(parts)


class Claim(Base):
    """Insurance claim a lead may be linked to."""

    __tablename__ = "claims"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    org_id: Mapped[str] = mapped_column(String, ForeignKey("organizations.id"), nullable=False)
    claim_number: Mapped[str | None] = mapped_column(String, nullable=True)
    carrier: Mapped[str | None] = mapped_column(String, nullable=True)
    policy_number: Mapped[str | None] = mapped_column(String, nullable=True)
    date_of_loss: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()"
    )

    reports: Mapped[list["Report"]] = relationship(
        "Report", back_populates="claim", cascade="all, delete-orphan"
    )


class Lead(Base):
    """Prospective or active restoration job."""

    __tablename__ = "leads"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    org_id: Mapped[str] = mapped_column(String, ForeignKey("organizations.id"), nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    claim_number: Mapped[str | None] = mapped_column(String, nullable=True)
    contact_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("contacts.id"), nullable=True
    )
    claim_id: Mapped[str | None] = mapped_column(String, ForeignKey("claims.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()"
    )

    contact: Mapped["Contact | None"] = relationship("Contact")
    claim: Mapped["Claim | None"] = relationship("Claim")

    __table_args__ = (Index("ix_leads_org_id_id", "org_id", "id"),)


class ClaimDraft(Base):
    """AI-generated claim draft; carries the scope JSON an export reads."""

    __tablename__ = "claim_drafts"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    org_id: Mapped[str] = mapped_column(String, ForeignKey("organizations.id"), nullable=False)
    lead_id: Mapped[str] = mapped_column(
        String, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False
    )
    scope: Mapped[Any] = mapped_column(
        JSONB(none_as_null=True), nullable=True, comment="Untyped line-item scope, validated at read time"
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()", nullable=False
    )

    __table_args__ = (Index("ix_claim_drafts_lead_org_created", "lead_id", "org_id", "created_at"),)


class Report(Base):
    """Previously generated report artifact kept in object storage."""

    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    org_id: Mapped[str] = mapped_column(String, ForeignKey("organizations.id"), nullable=False)
    claim_id: Mapped[str] = mapped_column(
        String, ForeignKey("claims.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    storage_path: Mapped[str] = mapped_column(String, nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()"
    )

    claim: Mapped["Claim"] = relationship("Claim", back_populates="reports")


class EstimateExport(Base):
    """One successful export run. Rows are only ever inserted."""

    __tablename__ = "estimate_exports"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    org_id: Mapped[str] = mapped_column(String, ForeignKey("organizations.id"), nullable=False)
    lead_id: Mapped[str] = mapped_column(String, ForeignKey("leads.id"), nullable=False)
    claim_id: Mapped[str | None] = mapped_column(String, ForeignKey("claims.id"), nullable=True)
    xml: Mapped[str] = mapped_column(Text, nullable=False)
    symbility: Mapped[dict] = mapped_column(JSONB, nullable=False)
    summary: Mapped[dict] = mapped_column(JSONB, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()", nullable=False
    )

    __table_args__ = (Index("ix_estimate_exports_org_lead", "org_id", "lead_id"),)
