"""Initial database schema.

Revision ID: 001
Revises:
Create Date: 2025-07-02

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create contracts, insured persons, premium rates and document requests."""
    # Timestamps are naive wall-clock values in the batch timezone.
    op.create_table(
        "contracts",
        sa.Column("id", sa.Integer(), nullable=False, autoincrement=True),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("insured_amount", sa.Numeric(15, 2), nullable=False),
        # Unconstrained scale: premiums are stored exactly as calculated.
        sa.Column("monthly_premium", sa.Numeric(), nullable=True),
        sa.Column("annual_premium", sa.Numeric(), nullable=True),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default="UNDER_REVIEW",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=False),
            nullable=False,
            server_default=sa.text("LOCALTIMESTAMP"),
        ),
        sa.Column("last_payment_date", sa.Date(), nullable=True),
        sa.Column("maturity_date", sa.Date(), nullable=True),
        sa.Column("cancellation_date", sa.Date(), nullable=True),
        sa.Column("cancellation_reason", sa.String(30), nullable=True),
        sa.Column("lapse_date", sa.Date(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=False), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_contracts")),
        sa.CheckConstraint(
            "status IN ('UNDER_REVIEW', 'APPROVED', 'CANCELLED', 'LAPSED', 'MATURED')",
            name=op.f("ck_contracts_status"),
        ),
        sa.CheckConstraint(
            "insured_amount > 0", name=op.f("ck_contracts_insured_amount_positive")
        ),
    )

    # Lifecycle guards: status plus the date each transition compares
    op.create_index(
        "ix_contracts_status_created_at", "contracts", ["status", "created_at"]
    )
    op.create_index(
        "ix_contracts_status_last_payment_date",
        "contracts",
        ["status", "last_payment_date"],
    )
    op.create_index(
        "ix_contracts_status_maturity_date", "contracts", ["status", "maturity_date"]
    )

    op.create_table(
        "insured_persons",
        sa.Column("id", sa.Integer(), nullable=False, autoincrement=True),
        sa.Column("contract_id", sa.Integer(), nullable=False),
        sa.Column("relationship", sa.String(10), nullable=False),
        sa.Column("gender", sa.String(1), nullable=False),
        sa.Column("entry_age", sa.Integer(), nullable=False),
        sa.Column("insurance_period", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_insured_persons")),
        sa.ForeignKeyConstraint(
            ["contract_id"],
            ["contracts.id"],
            name=op.f("fk_insured_persons_contract_id_contracts"),
        ),
        sa.CheckConstraint(
            "relationship IN ('SELF', 'SPOUSE', 'CHILD', 'OTHER')",
            name=op.f("ck_insured_persons_relationship"),
        ),
        sa.CheckConstraint(
            "gender IN ('M', 'F')", name=op.f("ck_insured_persons_gender")
        ),
    )
    op.create_index(
        "ix_insured_persons_contract_id_relationship",
        "insured_persons",
        ["contract_id", "relationship"],
    )

    op.create_table(
        "premium_rates",
        sa.Column("id", sa.Integer(), nullable=False, autoincrement=True),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("gender", sa.String(3), nullable=False),
        sa.Column("entry_age", sa.Integer(), nullable=False),
        sa.Column("insurance_period", sa.Integer(), nullable=False),
        sa.Column("base_rate", sa.Numeric(12, 8), nullable=False),
        sa.Column("loading_rate", sa.Numeric(12, 8), nullable=False),
        sa.Column("valid_from", sa.Date(), nullable=False),
        sa.Column("valid_to", sa.Date(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=False), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_premium_rates")),
        sa.CheckConstraint(
            "gender IN ('M', 'F', 'ALL')", name=op.f("ck_premium_rates_gender")
        ),
        sa.CheckConstraint(
            "valid_to IS NULL OR valid_to >= valid_from",
            name=op.f("ck_premium_rates_window"),
        ),
    )

    # Rate lookup: exact key, newest window first
    op.create_index(
        "ix_premium_rates_lookup",
        "premium_rates",
        ["product_id", "gender", "entry_age", "insurance_period", "valid_from"],
    )
    op.create_index("ix_premium_rates_valid_to", "premium_rates", ["valid_to"])

    op.create_table(
        "document_requests",
        sa.Column("id", sa.Integer(), nullable=False, autoincrement=True),
        sa.Column("request_number", sa.String(30), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="NEW"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=False),
            nullable=False,
            server_default=sa.text("LOCALTIMESTAMP"),
        ),
        sa.Column("follow_up_date", sa.Date(), nullable=True),
        sa.Column("completed_date", sa.DateTime(timezone=False), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_document_requests")),
        sa.UniqueConstraint(
            "request_number", name=op.f("uq_document_requests_request_number")
        ),
        sa.CheckConstraint(
            "status IN ('NEW', 'PROCESSING', 'COMPLETED', 'CANCELLED')",
            name=op.f("ck_document_requests_status"),
        ),
    )
    op.create_index(
        "ix_document_requests_status_created_at",
        "document_requests",
        ["status", "created_at"],
    )
    op.create_index(
        "ix_document_requests_follow_up_date", "document_requests", ["follow_up_date"]
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("document_requests")
    op.drop_table("premium_rates")
    op.drop_table("insured_persons")
    op.drop_table("contracts")
