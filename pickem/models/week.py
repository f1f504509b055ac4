from datetime import datetime, timezone

from sqlalchemy.orm import validates

from pickem import db

WEEK_STATUSES = ("open", "final")


class Week(db.Model):
    __tablename__ = "weeks"

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.String(64), db.ForeignKey("leagues.id"), nullable=False)
    week_id = db.Column(db.String(16), nullable=False)  # e.g. "2025-W01"

    # Picks lock at the deadline, or earlier via the manual override
    deadline = db.Column(db.DateTime(timezone=True))
    locked = db.Column(db.Boolean, default=False)

    tiebreaker_event_key = db.Column(db.String(128))

    # Status (open -> final, one-way)
    status = db.Column(db.String(10), default="open", nullable=False)
    finalized_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    games = db.relationship(
        "Game", backref="week", lazy="dynamic", cascade="all, delete-orphan"
    )
    picks = db.relationship(
        "UserPick", backref="week", lazy="dynamic", cascade="all, delete-orphan"
    )
    scores = db.relationship(
        "WeekScore", backref="week", lazy="dynamic", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.UniqueConstraint("league_id", "week_id", name="unique_league_week"),
        db.Index("idx_week_league_status", "league_id", "status"),
    )

    def __repr__(self):
        return f"<Week {self.league_id}/{self.week_id} {self.status}>"

    @validates("status")
    def validate_status(self, key, value):
        if value not in WEEK_STATUSES:
            raise ValueError(f"Invalid week status: {value!r}")
        return value

    @property
    def is_final(self):
        return self.status == "final"

    def is_locked(self, now=None):
        """Check if picks are locked (manual override or deadline passed)"""
        if self.locked:
            return True
        if not self.deadline:
            return False

        now = now or datetime.now(timezone.utc)
        deadline = self.deadline

        # If deadline is timezone-naive, assume it's in UTC
        if deadline.tzinfo is None:
            deadline = deadline.replace(tzinfo=timezone.utc)

        return now >= deadline

    def finalize(self, now=None):
        """Mark week as final (no-op if already final)"""
        if self.is_final:
            return False

        self.status = "final"
        self.finalized_at = now or datetime.now(timezone.utc)
        return True

    def to_dict(self):
        """Convert week to dictionary for API responses"""
        from pickem.utils.weeks import format_week_label

        return {
            "league_id": self.league_id,
            "week_id": self.week_id,
            "label": format_week_label(self.week_id),
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "locked": bool(self.locked),
            "is_locked": self.is_locked(),
            "tiebreaker_event_key": self.tiebreaker_event_key,
            "status": self.status,
            "finalized_at": (
                self.finalized_at.isoformat() if self.finalized_at else None
            ),
        }
