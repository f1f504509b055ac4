from datetime import datetime, timezone

from sqlalchemy.orm import validates

from pickem import db

WINNERS = ("home", "away", "tie")


class Game(db.Model):
    __tablename__ = "games"

    id = db.Column(db.Integer, primary_key=True)
    week_pk = db.Column(db.Integer, db.ForeignKey("weeks.id"), nullable=False)

    # Stable key assigned by the provider or an admin
    event_key = db.Column(db.String(128), nullable=False)

    # Teams (display names)
    home = db.Column(db.String(100), nullable=False)
    away = db.Column(db.String(100), nullable=False)

    start_time = db.Column(db.DateTime(timezone=True))  # UTC

    # Results
    final_score_home = db.Column(db.Integer)
    final_score_away = db.Column(db.Integer)
    winner = db.Column(db.String(4))
    decided = db.Column(db.Boolean, default=False, nullable=False)

    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.UniqueConstraint("week_pk", "event_key", name="unique_week_event"),
        db.Index("idx_game_week_decided", "week_pk", "decided"),
    )

    def __repr__(self):
        return f"<Game {self.away} @ {self.home} ({self.event_key})>"

    @validates("winner")
    def validate_winner(self, key, value):
        if value is not None and value not in WINNERS:
            raise ValueError(f"Invalid winner: {value!r}")
        return value

    @property
    def provider_event_id(self):
        """Provider event id derived from the event key ("abc123:ncaaf" -> "abc123")"""
        key = (self.event_key or "").strip()
        return key.split(":")[0] if ":" in key else key

    def set_result(self, home_score, away_score):
        """Record final scores; decided only when both scores are present"""
        from pickem.utils.scoring import resolve_winner

        self.final_score_home = home_score
        self.final_score_away = away_score
        self.winner = resolve_winner(home_score, away_score)
        self.decided = self.winner is not None

    def set_winner_only(self, winner):
        """Manual override without scores"""
        if winner not in ("home", "away"):
            raise ValueError(f"Winner override must be 'home' or 'away', got {winner!r}")
        self.winner = winner
        self.decided = True

    def get_picks_count(self):
        """Get count of picks for each side (consensus)"""
        counts = {"home": 0, "away": 0}
        for pick in self.week.picks.all():
            if not pick.is_well_formed():
                continue
            side = pick.selections.get(self.event_key)
            if side in counts:
                counts[side] += 1
        counts["total"] = counts["home"] + counts["away"]
        return counts

    def to_dict(self, include_picks_count=False):
        """Convert game to dictionary for API responses"""
        from pickem.utils.scoring import effective_winner

        data = {
            "event_key": self.event_key,
            "home": self.home,
            "away": self.away,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "final_score_home": self.final_score_home,
            "final_score_away": self.final_score_away,
            "winner": effective_winner(self) if self.decided else self.winner,
            "decided": bool(self.decided),
        }

        if include_picks_count:
            data["picks_count"] = self.get_picks_count()

        return data
