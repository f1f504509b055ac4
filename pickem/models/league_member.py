from datetime import datetime, timezone

from pickem import db


class LeagueMember(db.Model):
    __tablename__ = "league_members"

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.String(64), db.ForeignKey("leagues.id"), nullable=False)
    user_id = db.Column(db.String(128), nullable=False)
    display_name = db.Column(db.String(100))

    # Membership status and role
    is_active = db.Column(db.Boolean, default=True)
    is_admin = db.Column(db.Boolean, default=False)

    # Timestamps
    joined_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    left_at = db.Column(db.DateTime)

    __table_args__ = (
        db.UniqueConstraint("league_id", "user_id", name="unique_league_member"),
        db.Index("idx_league_members_active", "league_id", "is_active"),
    )

    def __repr__(self):
        return f"<LeagueMember user_id={self.user_id} league_id={self.league_id}>"

    def deactivate(self):
        """Deactivate membership"""
        self.is_active = False
        self.left_at = datetime.now(timezone.utc)

    def to_dict(self):
        """Convert membership to dictionary for API responses"""
        return {
            "user_id": self.user_id,
            "league_id": self.league_id,
            "display_name": self.display_name or self.user_id,
            "is_admin": self.is_admin,
            "joined_at": self.joined_at.isoformat() if self.joined_at else None,
        }
