"""Initial schema: accounts, profiles, hospitals, requests, donations, kv store

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa

from lifelink.db.base import UUID, UTCDateTime


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

BLOOD_TYPES = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")

blood_group = sa.Enum(*BLOOD_TYPES, "Not Set", name="blood_group")
availability_status = sa.Enum(
    "Available", "Unavailable", "Recently Donated", name="availability_status"
)
user_role = sa.Enum("individual", "hospital_admin", "platform_admin", name="user_role")
hospital_status = sa.Enum("pending_review", "approved", "suspended", name="hospital_status")
blood_type = sa.Enum(*BLOOD_TYPES, name="blood_type")
urgency_level = sa.Enum("Critical", "High", "Medium", "Low", name="urgency_level")
request_status = sa.Enum(
    "pending_verification", "active", "fulfilled", "cancelled", name="request_status"
)


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", UUID(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False),
        sa.Column("last_login", UTCDateTime(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "hospitals",
        sa.Column("id", UUID(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.Text, nullable=False),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("contact_person_name", sa.String(255), nullable=False),
        sa.Column("contact_info", sa.String(255), nullable=False),
        sa.Column("license_number", sa.String(100), nullable=False),
        sa.Column("application_date", sa.Date, nullable=False),
        sa.Column("status", hospital_status, nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
    )
    op.create_index("ix_hospitals_name", "hospitals", ["name"])
    op.create_index(
        "ix_hospitals_license_number", "hospitals", ["license_number"], unique=True
    )
    op.create_index("ix_hospitals_status", "hospitals", ["status"])

    op.create_table(
        "profiles",
        sa.Column(
            "id",
            UUID(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone_number", sa.String(30), nullable=True),
        sa.Column("date_of_birth", sa.Date, nullable=True),
        sa.Column("blood_group", blood_group, nullable=False),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("availability_status", availability_status, nullable=False),
        sa.Column("profile_complete", sa.Boolean, nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column(
            "hospital_id",
            UUID(),
            sa.ForeignKey("hospitals.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"])
    op.create_index("ix_profiles_blood_group", "profiles", ["blood_group"])
    op.create_index("ix_profiles_availability_status", "profiles", ["availability_status"])
    op.create_index("ix_profiles_profile_complete", "profiles", ["profile_complete"])
    op.create_index("ix_profiles_role", "profiles", ["role"])
    op.create_index("ix_profiles_hospital_id", "profiles", ["hospital_id"])
    op.create_index("ix_profiles_created_at", "profiles", ["created_at"])
    op.create_index("idx_profiles_location", "profiles", ["latitude", "longitude"])
    op.create_index(
        "idx_profiles_donor_match",
        "profiles",
        ["role", "profile_complete", "availability_status", "blood_group"],
    )

    op.create_table(
        "blood_requests",
        sa.Column("id", UUID(), primary_key=True, nullable=False),
        sa.Column("patient_name", sa.String(255), nullable=False),
        sa.Column("patient_age", sa.Integer, nullable=False),
        sa.Column("blood_group_needed", blood_type, nullable=False),
        sa.Column("urgency", urgency_level, nullable=False),
        sa.Column("status", request_status, nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.Column(
            "requester_id",
            UUID(),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "hospital_id",
            UUID(),
            sa.ForeignKey("hospitals.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "patient_age >= 0 AND patient_age <= 150", name="ck_blood_requests_patient_age"
        ),
    )
    op.create_index("ix_blood_requests_blood_group_needed", "blood_requests", ["blood_group_needed"])
    op.create_index("ix_blood_requests_urgency", "blood_requests", ["urgency"])
    op.create_index("ix_blood_requests_status", "blood_requests", ["status"])
    op.create_index("ix_blood_requests_created_at", "blood_requests", ["created_at"])
    op.create_index("ix_blood_requests_requester_id", "blood_requests", ["requester_id"])
    op.create_index("ix_blood_requests_hospital_id", "blood_requests", ["hospital_id"])
    op.create_index(
        "idx_blood_requests_hospital_status", "blood_requests", ["hospital_id", "status"]
    )

    op.create_table(
        "donations",
        sa.Column("id", UUID(), primary_key=True, nullable=False),
        sa.Column(
            "donor_id",
            UUID(),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "hospital_id",
            UUID(),
            sa.ForeignKey("hospitals.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "request_id",
            UUID(),
            sa.ForeignKey("blood_requests.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("donation_date", sa.Date, nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
    )
    op.create_index("ix_donations_donor_id", "donations", ["donor_id"])
    op.create_index("ix_donations_hospital_id", "donations", ["hospital_id"])
    op.create_index("ix_donations_request_id", "donations", ["request_id"])

    op.create_table(
        "kv_store",
        sa.Column("key", sa.String(255), primary_key=True, nullable=False),
        sa.Column("value", sa.JSON, nullable=False),
    )


def downgrade():
    op.drop_table("kv_store")
    op.drop_table("donations")
    op.drop_table("blood_requests")
    op.drop_table("profiles")
    op.drop_table("hospitals")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in (
        request_status,
        urgency_level,
        blood_type,
        hospital_status,
        user_role,
        availability_status,
        blood_group,
    ):
        enum.drop(bind, checkfirst=True)
