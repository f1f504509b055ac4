from datetime import datetime, timezone

from pickem import db


class League(db.Model):
    __tablename__ = "leagues"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(100), nullable=False)

    # Week pointer, advanced by the recomputation procedure
    current_week_id = db.Column(db.String(16))
    last_advanced_at = db.Column(db.DateTime)

    # Scoring settings
    points_per_correct = db.Column(db.Integer, default=1, nullable=False)

    # Results provider sport (falls back to ODDS_SPORT_KEY)
    sport_key = db.Column(db.String(64))
    timezone = db.Column(db.String(64), default="America/New_York")

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    members = db.relationship(
        "LeagueMember", backref="league", lazy="dynamic", cascade="all, delete-orphan"
    )
    weeks = db.relationship(
        "Week", backref="league", lazy="dynamic", cascade="all, delete-orphan"
    )
    leaderboard_entries = db.relationship(
        "SeasonLeaderboardEntry",
        backref="league",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<League {self.id}>"

    def to_dict(self):
        """Convert league to dictionary for API responses"""
        return {
            "id": self.id,
            "name": self.name,
            "current_week_id": self.current_week_id,
            "points_per_correct": self.points_per_correct,
            "sport_key": self.sport_key,
            "timezone": self.timezone,
            "last_advanced_at": (
                self.last_advanced_at.isoformat() if self.last_advanced_at else None
            ),
        }
