"""quotation, rate card and shipper tables

Revision ID: 5c1e9a7d2b40
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "5c1e9a7d2b40"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    op.create_table(
        "shippers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("shipper_code", sa.String(50), nullable=False, unique=True),
        sa.Column("shipper_name", sa.String(255), nullable=False),
        sa.Column("shipper_type", sa.String(100)),
        sa.Column("contact_person", sa.String(255)),
        sa.Column("contact_email", sa.String(255)),
        sa.Column("contact_phone", sa.String(50)),
        sa.Column("country", sa.String(100)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.Text),
        *_timestamps(),
    )
    op.create_index("ix_shippers_shipper_code", "shippers", ["shipper_code"])
    op.create_index("ix_shippers_shipper_type", "shippers", ["shipper_type"])

    op.create_table(
        "rate_cards",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("rate_card_number", sa.String(50), nullable=False, unique=True),
        sa.Column(
            "shipper_id",
            sa.String(36),
            sa.ForeignKey("shippers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("rate_type", sa.String(50), nullable=False),
        sa.Column("shipment_type", sa.String(50), nullable=False),
        sa.Column("origin_airport", sa.String(10), nullable=False),
        sa.Column("origin_city", sa.String(100)),
        sa.Column("origin_country", sa.String(100)),
        sa.Column("destination_airport", sa.String(10), nullable=False),
        sa.Column("destination_city", sa.String(100)),
        sa.Column("destination_country", sa.String(100)),
        sa.Column("commodity_type", sa.String(100)),
        sa.Column("min_weight_kg", sa.Numeric(12, 2)),
        sa.Column("max_weight_kg", sa.Numeric(12, 2)),
        sa.Column("weight_slabs", sa.JSON, nullable=False),
        sa.Column("surcharges", sa.JSON, nullable=False),
        sa.Column("origin_handling_charges", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("destination_handling_charges", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("valid_from", sa.Date, nullable=False),
        sa.Column("valid_until", sa.Date, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("transit_time_days", sa.Integer),
        sa.Column("free_storage_days", sa.Integer),
        sa.Column("margin_percentage", sa.Numeric(5, 2)),
        sa.Column("margin_flat_fee", sa.Numeric(12, 2)),
        sa.Column("notes", sa.Text),
        sa.Column("created_by", sa.String(100)),
        *_timestamps(),
    )
    op.create_index("ix_rate_cards_rate_card_number", "rate_cards", ["rate_card_number"])
    op.create_index("ix_rate_cards_shipper_id", "rate_cards", ["shipper_id"])
    op.create_index("ix_rate_cards_shipment_type", "rate_cards", ["shipment_type"])
    op.create_index("ix_rate_cards_origin_airport", "rate_cards", ["origin_airport"])
    op.create_index("ix_rate_cards_destination_airport", "rate_cards", ["destination_airport"])
    op.create_index("ix_rate_cards_valid_until", "rate_cards", ["valid_until"])
    op.create_index("ix_rate_cards_status", "rate_cards", ["status"])

    op.create_table(
        "quotations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("quote_number", sa.String(50), nullable=False, unique=True),
        sa.Column("customer_id", sa.String(100), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("customer_email", sa.String(320)),
        sa.Column("customer_phone", sa.String(50)),
        sa.Column("shipment_type", sa.String(50), nullable=False),
        sa.Column("origin_location", sa.String(255)),
        sa.Column("origin_country", sa.String(100)),
        sa.Column("destination_location", sa.String(255)),
        sa.Column("destination_country", sa.String(100)),
        sa.Column("cargo_description", sa.Text),
        sa.Column("cargo_weight_kg", sa.Numeric(12, 2)),
        sa.Column("cargo_volume_cbm", sa.Numeric(12, 3)),
        sa.Column("cargo_dimensions", sa.JSON),
        sa.Column("chargeable_weight", sa.Numeric(12, 2)),
        sa.Column("service_requirements", sa.JSON),
        sa.Column("total_cost", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("cost_breakdown", sa.JSON),
        sa.Column("quote_source_mode", sa.String(20), nullable=False, server_default="MANUAL"),
        sa.Column(
            "rate_card_id",
            sa.String(36),
            sa.ForeignKey("rate_cards.id", ondelete="SET NULL"),
        ),
        sa.Column("shipper_quote_request_id", sa.String(36)),
        sa.Column("shipper_cost", sa.Numeric(12, 2)),
        sa.Column("margin_percentage", sa.Numeric(5, 2)),
        sa.Column("margin_amount", sa.Numeric(12, 2)),
        sa.Column("valid_from", sa.Date, nullable=False),
        sa.Column("valid_until", sa.Date, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column("notes", sa.Text),
        sa.Column("internal_notes", sa.Text),
        sa.Column("created_by", sa.String(100)),
        sa.Column("approved_by", sa.String(100)),
        *_timestamps(),
        sa.Column("sent_at", sa.DateTime(timezone=True)),
        sa.Column("accepted_at", sa.DateTime(timezone=True)),
        sa.Column("rejected_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_quotations_quote_number", "quotations", ["quote_number"])
    op.create_index("ix_quotations_customer_id", "quotations", ["customer_id"])
    op.create_index("ix_quotations_shipment_type", "quotations", ["shipment_type"])
    op.create_index("ix_quotations_quote_source_mode", "quotations", ["quote_source_mode"])
    op.create_index("ix_quotations_rate_card_id", "quotations", ["rate_card_id"])
    op.create_index("ix_quotations_valid_until", "quotations", ["valid_until"])
    op.create_index("ix_quotations_status", "quotations", ["status"])

    op.create_table(
        "shipper_quote_requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("request_number", sa.String(50), nullable=False, unique=True),
        sa.Column(
            "quotation_id",
            sa.String(36),
            sa.ForeignKey("quotations.id", ondelete="SET NULL"),
        ),
        sa.Column(
            "shipper_id",
            sa.String(36),
            sa.ForeignKey("shippers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("shipment_type", sa.String(50), nullable=False),
        sa.Column("commodity_type", sa.String(100)),
        sa.Column("origin_location", sa.String(255), nullable=False),
        sa.Column("origin_country", sa.String(100)),
        sa.Column("destination_location", sa.String(255), nullable=False),
        sa.Column("destination_country", sa.String(100)),
        sa.Column("gross_weight_kg", sa.Numeric(12, 2), nullable=False),
        sa.Column("cargo_volume_cbm", sa.Numeric(12, 3)),
        sa.Column("dimensions", sa.JSON),
        sa.Column("incoterm", sa.String(10)),
        sa.Column("special_handling", sa.Text),
        sa.Column("required_by_date", sa.Date),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("shipper_quote_amount", sa.Numeric(12, 2)),
        sa.Column("shipper_quote_currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("shipper_quote_validity", sa.Date),
        sa.Column("shipper_quote_file_url", sa.Text),
        sa.Column("shipper_response_details", sa.JSON),
        sa.Column("margin_percentage", sa.Numeric(5, 2)),
        sa.Column("margin_flat_fee", sa.Numeric(12, 2)),
        sa.Column("final_quote_amount", sa.Numeric(12, 2)),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("responded_at", sa.DateTime(timezone=True)),
        sa.Column("requested_by", sa.String(100)),
        sa.Column("notes", sa.Text),
        *_timestamps(),
    )
    op.create_index("ix_shipper_quote_requests_request_number", "shipper_quote_requests", ["request_number"])
    op.create_index("ix_shipper_quote_requests_quotation_id", "shipper_quote_requests", ["quotation_id"])
    op.create_index("ix_shipper_quote_requests_shipper_id", "shipper_quote_requests", ["shipper_id"])
    op.create_index("ix_shipper_quote_requests_status", "shipper_quote_requests", ["status"])

    op.create_table(
        "audit_events",
        sa.Column("event_id", sa.String(100), primary_key=True),
        sa.Column("action_type", sa.String(100), nullable=False),
        sa.Column("actor", sa.String(100)),
        sa.Column("target_type", sa.String(50)),
        sa.Column("target_id", sa.String(36)),
        sa.Column("old_value", sa.JSON),
        sa.Column("new_value", sa.JSON),
        sa.Column("reason", sa.Text),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_audit_events_action_type", "audit_events", ["action_type"])
    op.create_index("ix_audit_events_target_type", "audit_events", ["target_type"])
    op.create_index("ix_audit_events_target_id", "audit_events", ["target_id"])


def downgrade():
    op.drop_table("audit_events")
    op.drop_table("shipper_quote_requests")
    op.drop_table("quotations")
    op.drop_table("rate_cards")
    op.drop_table("shippers")
