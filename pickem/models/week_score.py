from pickem import db


class WeekScore(db.Model):
    """Derived per-user score for one week

    Fully overwritten by the week recomputation; carries no timestamps so an
    unchanged recomputation leaves the row untouched.
    """

    __tablename__ = "week_scores"

    id = db.Column(db.Integer, primary_key=True)
    week_pk = db.Column(db.Integer, db.ForeignKey("weeks.id"), nullable=False)
    user_id = db.Column(db.String(128), nullable=False)

    correct = db.Column(db.Integer, default=0, nullable=False)
    total = db.Column(db.Integer, default=0, nullable=False)
    points = db.Column(db.Integer, default=0, nullable=False)

    tiebreaker_prediction = db.Column(db.Integer)
    tiebreaker_actual = db.Column(db.Integer)
    tiebreaker_abs_error = db.Column(db.Integer)

    __table_args__ = (
        db.UniqueConstraint("week_pk", "user_id", name="unique_week_user_score"),
        db.Index("idx_week_score_week", "week_pk"),
    )

    def __repr__(self):
        return f"<WeekScore user_id={self.user_id} week={self.week_pk} correct={self.correct}>"

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "correct": self.correct,
            "total": self.total,
            "points": self.points,
            "tiebreaker_prediction": self.tiebreaker_prediction,
            "tiebreaker_actual": self.tiebreaker_actual,
            "tiebreaker_abs_error": self.tiebreaker_abs_error,
        }
