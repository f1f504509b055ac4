# Eventlet monkey patching MUST be first before any other imports
import eventlet
eventlet.monkey_patch()

from pickem import create_app, db, socketio  # noqa: E402
from pickem.models import Game, League, LeagueMember, UserPick, Week, WeekScore  # noqa: E402

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "League": League,
        "LeagueMember": LeagueMember,
        "Week": Week,
        "Game": Game,
        "UserPick": UserPick,
        "WeekScore": WeekScore,
    }


if __name__ == "__main__":
    socketio.run(app, host="0.0.0.0", port=5000, debug=app.config.get("DEBUG", False))
