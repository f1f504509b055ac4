from datetime import datetime, timezone

from pickem import db


class SeasonLeaderboardEntry(db.Model):
    """Season totals for one user, summed over the league's finalized weeks

    Rebuilt from WeekScore rows on every aggregation; never patched.
    """

    __tablename__ = "season_leaderboard"

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.String(64), db.ForeignKey("leagues.id"), nullable=False)
    user_id = db.Column(db.String(128), nullable=False)

    correct = db.Column(db.Integer, default=0, nullable=False)
    total = db.Column(db.Integer, default=0, nullable=False)
    points = db.Column(db.Integer, default=0, nullable=False)
    weeks_counted = db.Column(db.Integer, default=0, nullable=False)
    tiebreaker_abs_error_total = db.Column(db.Integer, default=0, nullable=False)
    # Final weeks in which the user had a scored tiebreaker prediction
    tiebreaker_weeks = db.Column(db.Integer, default=0, nullable=False)

    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.UniqueConstraint("league_id", "user_id", name="unique_league_leaderboard_user"),
        db.Index("idx_leaderboard_league", "league_id"),
    )

    def __repr__(self):
        return f"<SeasonLeaderboardEntry league={self.league_id} user={self.user_id} points={self.points}>"

    def sort_key(self):
        # Points, then correct picks, then fewest weeks without a tiebreaker,
        # then closest tiebreakers
        missed = (self.weeks_counted or 0) - (self.tiebreaker_weeks or 0)
        return (
            -self.points,
            -self.correct,
            missed,
            self.tiebreaker_abs_error_total,
            self.user_id,
        )

    def to_dict(self, rank=None):
        data = {
            "user_id": self.user_id,
            "correct": self.correct,
            "total": self.total,
            "points": self.points,
            "weeks_counted": self.weeks_counted,
            "tiebreaker_abs_error_total": self.tiebreaker_abs_error_total,
            "tiebreaker_weeks": self.tiebreaker_weeks,
            # Historical field names still read by older clients
            "strokeCorrect": self.correct,
            "strokeTotal": self.total,
        }
        if rank is not None:
            data["rank"] = rank
        return data
