"""Per-device game records for players who are not signed in."""

from datetime import datetime, timezone

from extensions import db


class DeviceGameRecord(db.Model):
    """One row per (device, calendar date); rewritten in place on every save."""

    __tablename__ = "device_games"

    id = db.Column(db.Integer, primary_key=True)
    device_id = db.Column(db.String(36), index=True, nullable=False)
    date = db.Column(db.String(10), nullable=False)
    won = db.Column(db.Boolean, default=False, nullable=False)
    guess_count = db.Column(db.Integer, default=0, nullable=False)
    answer_name = db.Column(db.String(80), nullable=False)
    is_finished = db.Column(db.Boolean, default=False, nullable=False)
    guess_names = db.Column(db.Text, nullable=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        db.UniqueConstraint("device_id", "date", name="uq_device_games_device_date"),
    )
