"""Initial schema: users, trips, bookings, reviews, favorite searches.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column(
            "role", sa.Enum("DRIVER", "PASSENGER", name="userrole"), nullable=False
        ),
        *_timestamps(),
    )

    # ── trips ─────────────────────────────────────────────────────────
    op.create_table(
        "trips",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("origin_address", sa.String(200), nullable=False),
        sa.Column("origin_lat", sa.Float, nullable=True),
        sa.Column("origin_lng", sa.Float, nullable=True),
        sa.Column("destination_address", sa.String(200), nullable=False),
        sa.Column("destination_lat", sa.Float, nullable=True),
        sa.Column("destination_lng", sa.Float, nullable=True),
        sa.Column("departure_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("available_seats", sa.Integer, nullable=False),
        sa.Column("total_seats", sa.Integer, nullable=False),
        *_timestamps(),
        sa.CheckConstraint("available_seats >= 0", name="ck_trips_seats_non_negative"),
        sa.CheckConstraint(
            "available_seats <= total_seats", name="ck_trips_seats_within_total"
        ),
        sa.CheckConstraint("total_seats BETWEEN 1 AND 8", name="ck_trips_total_seats"),
    )
    op.create_index("idx_trips_departure", "trips", ["departure_time"])
    op.create_index("idx_trips_driver", "trips", ["driver_id"])
    op.create_index(
        "idx_trips_origin_coords", "trips", ["origin_lat", "origin_lng"]
    )
    op.create_index(
        "idx_trips_destination_coords",
        "trips",
        ["destination_lat", "destination_lng"],
    )
    op.create_index(
        "idx_trips_addresses", "trips", ["origin_address", "destination_address"]
    )

    # ── bookings ──────────────────────────────────────────────────────
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "trip_id",
            sa.Integer,
            sa.ForeignKey("trips.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "passenger_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "status",
            sa.Enum("PENDING", "CONFIRMED", "CANCELLED", name="bookingstatus"),
            nullable=False,
        ),
        *_timestamps(),
    )
    # one active booking per passenger per trip; cancelled rows don't count
    op.create_index(
        "uq_bookings_active_trip_passenger",
        "bookings",
        ["trip_id", "passenger_id"],
        unique=True,
        postgresql_where=sa.text("status <> 'CANCELLED'"),
    )
    op.create_index("idx_bookings_passenger", "bookings", ["passenger_id"])
    op.create_index("idx_bookings_trip", "bookings", ["trip_id"])

    # ── reviews ───────────────────────────────────────────────────────
    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "trip_id",
            sa.Integer,
            sa.ForeignKey("trips.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "reviewer_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("comment", sa.String(500), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("trip_id", "reviewer_id", name="uq_reviews_trip_reviewer"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating"),
    )
    op.create_index("idx_reviews_driver", "reviews", ["driver_id"])
    op.create_index("idx_reviews_reviewer", "reviews", ["reviewer_id"])

    # ── favorite_searches ─────────────────────────────────────────────
    op.create_table(
        "favorite_searches",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("label", sa.String(100), nullable=False),
        sa.Column("origin", sa.String(200), nullable=False),
        sa.Column("destination", sa.String(200), nullable=False),
        sa.Column("preferred_time", sa.String(5), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "user_id", "origin", "destination", name="uq_favorites_user_route"
        ),
    )
    op.create_index("idx_favorites_user", "favorite_searches", ["user_id"])


def downgrade() -> None:
    op.drop_table("favorite_searches")
    op.drop_table("reviews")
    op.drop_table("bookings")
    op.drop_table("trips")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS bookingstatus")
    op.execute("DROP TYPE IF EXISTS userrole")
