"""create conference schema

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role_enum = sa.Enum("organizer", "event_manager", "faculty", "delegate", name="user_role")
event_status_enum = sa.Enum("draft", "published", "ongoing", "completed", "cancelled", name="event_status")
session_status_enum = sa.Enum("draft", "confirmed", name="session_status")
invite_status_enum = sa.Enum("pending", "accepted", "declined", name="invite_status")
travel_status_enum = sa.Enum("pending", "arranged", "not_required", name="travel_status")
rejection_reason_enum = sa.Enum("not_interested", "suggested_topic", "time_conflict", name="rejection_reason")
accommodation_type_enum = sa.Enum(
    "accessibility", "medical", "religious", "language", "technical", "other", name="accommodation_type"
)
accommodation_priority_enum = sa.Enum("low", "normal", "high", "urgent", name="accommodation_priority")
contact_method_enum = sa.Enum("email", "phone", "text", "mail", name="contact_method")
accommodation_status_enum = sa.Enum("open", "in_progress", "resolved", name="accommodation_status")
feedback_type_enum = sa.Enum("general", "bug", "feature", "complaint", "compliment", name="feedback_type")

ENUMS = (
    user_role_enum,
    event_status_enum,
    session_status_enum,
    invite_status_enum,
    travel_status_enum,
    rejection_reason_enum,
    accommodation_type_enum,
    accommodation_priority_enum,
    contact_method_enum,
    accommodation_status_enum,
    feedback_type_enum,
)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("institution", sa.String(length=200), nullable=True),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("designation", sa.String(length=200), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("event_id", sa.String(length=64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_event_id", "users", ["event_id"])

    op.create_table(
        "events",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("status", event_status_enum, nullable=False, server_default="draft"),
        sa.Column("created_by_id", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_events_created_by_id", "events", ["created_by_id"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_rooms_name", "rooms", ["name"], unique=True)

    op.create_table(
        "conference_sessions",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("place", sa.String(length=255), nullable=False),
        sa.Column("room_id", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", session_status_enum, nullable=False, server_default="draft"),
        sa.Column("invite_status", invite_status_enum, nullable=False, server_default="pending"),
        sa.Column("travel_status", travel_status_enum, nullable=False, server_default="pending"),
        sa.Column("rejection_reason", rejection_reason_enum, nullable=True),
        sa.Column("suggested_topic", sa.Text(), nullable=True),
        sa.Column("suggested_time_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("suggested_time_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("optional_query", sa.Text(), nullable=True),
        sa.Column("event_id", sa.String(length=64), nullable=True),
        sa.Column("faculty_id", sa.String(length=64), nullable=False),
        sa.Column("faculty_email", sa.String(length=255), nullable=False),
        sa.Column("poster_path", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_conference_sessions_room_id", "conference_sessions", ["room_id"])
    op.create_index("ix_conference_sessions_start_time", "conference_sessions", ["start_time"])
    op.create_index("ix_conference_sessions_event_id", "conference_sessions", ["event_id"])
    op.create_index("ix_conference_sessions_faculty_id", "conference_sessions", ["faculty_id"])

    op.create_table(
        "cv_uploads",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("faculty_id", sa.String(length=64), nullable=False),
        sa.Column("file_path", sa.String(length=500), nullable=False),
        sa.Column("file_type", sa.String(length=150), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("original_filename", sa.String(length=255), nullable=False),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("session_metadata_id", sa.String(length=64), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_cv_uploads_faculty_id", "cv_uploads", ["faculty_id"])

    op.create_table(
        "presentations",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("session_id", sa.String(length=64), nullable=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("file_path", sa.String(length=500), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_presentations_session_id", "presentations", ["session_id"])
    op.create_index("ix_presentations_user_id", "presentations", ["user_id"])

    op.create_table(
        "accommodation_requests",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("event_id", sa.String(length=64), nullable=True),
        sa.Column("type", accommodation_type_enum, nullable=False),
        sa.Column("priority", accommodation_priority_enum, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("contact_method", contact_method_enum, nullable=False),
        sa.Column("contact_info", sa.String(length=255), nullable=False),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("urgent_details", sa.Text(), nullable=True),
        sa.Column("status", accommodation_status_enum, nullable=False, server_default="open"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_accommodation_requests_user_id", "accommodation_requests", ["user_id"])
    op.create_index("ix_accommodation_requests_event_id", "accommodation_requests", ["event_id"])

    op.create_table(
        "feedback_items",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("reporter_id", sa.String(length=64), nullable=False),
        sa.Column("event_id", sa.String(length=64), nullable=True),
        sa.Column("feedback_type", feedback_type_enum, nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("reply_email", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_feedback_items_reporter_id", "feedback_items", ["reporter_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_user_id", "activity_logs", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_user_id", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("ix_feedback_items_reporter_id", table_name="feedback_items")
    op.drop_table("feedback_items")
    op.drop_index("ix_accommodation_requests_event_id", table_name="accommodation_requests")
    op.drop_index("ix_accommodation_requests_user_id", table_name="accommodation_requests")
    op.drop_table("accommodation_requests")
    op.drop_index("ix_presentations_user_id", table_name="presentations")
    op.drop_index("ix_presentations_session_id", table_name="presentations")
    op.drop_table("presentations")
    op.drop_index("ix_cv_uploads_faculty_id", table_name="cv_uploads")
    op.drop_table("cv_uploads")
    op.drop_index("ix_conference_sessions_faculty_id", table_name="conference_sessions")
    op.drop_index("ix_conference_sessions_event_id", table_name="conference_sessions")
    op.drop_index("ix_conference_sessions_start_time", table_name="conference_sessions")
    op.drop_index("ix_conference_sessions_room_id", table_name="conference_sessions")
    op.drop_table("conference_sessions")
    op.drop_index("ix_rooms_name", table_name="rooms")
    op.drop_table("rooms")
    op.drop_index("ix_events_created_by_id", table_name="events")
    op.drop_table("events")
    op.drop_index("ix_users_event_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    bind = op.get_bind()
    for enum in ENUMS:
        enum.drop(bind, checkfirst=True)
