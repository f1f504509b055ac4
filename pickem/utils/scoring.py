"""
Scoring Engine for the Pick'em league

Pure functions for deciding winners, grading picks and tiebreakers, and
scoring a user's week. Nothing here touches the database; the recomputation
procedures in pickem.services.recompute load the inputs and persist results.

Game arguments only need the attributes event_key, decided, winner,
final_score_home and final_score_away, so both Game rows and plain objects work.
"""

from collections import namedtuple

PENDING = "pending"
TIE = "tie"
CORRECT = "correct"
INCORRECT = "incorrect"

WeekScoreResult = namedtuple(
    "WeekScoreResult",
    [
        "correct",
        "total",
        "points",
        "tiebreaker_prediction",
        "tiebreaker_actual",
        "tiebreaker_abs_error",
    ],
)


def resolve_winner(home_score, away_score):
    """
    Decide the winner from final scores.

    Returns:
        None if either score is missing, "tie" if equal,
        otherwise "home" or "away" for the higher score
    """
    if home_score is None or away_score is None:
        return None
    if home_score == away_score:
        return "tie"
    return "home" if home_score > away_score else "away"


def effective_winner(game):
    """
    Winner to score a game against.

    Scores win over the stored winner field whenever both are present; a
    stored winner without scores is an admin override and is used as-is.
    """
    winner = resolve_winner(game.final_score_home, game.final_score_away)
    if winner is not None:
        return winner
    return game.winner


def pick_verdict(pick, game):
    """
    Grade one pick against one game.

    Args:
        pick: "home", "away" or None when the user made no pick
        game: Game-like object, or None

    Returns:
        "pending" if the game is undecided or there is no pick,
        "tie" if the game was decided as a tie (whether or not a pick exists),
        otherwise "correct" or "incorrect"
    """
    if game is None or not game.decided:
        return PENDING

    winner = effective_winner(game)
    if winner == "tie":
        return TIE
    if not pick or winner is None:
        return PENDING

    return CORRECT if pick == winner else INCORRECT


def tiebreaker_actual(game):
    """Home minus away differential, or None if either score is missing"""
    if game is None:
        return None
    if game.final_score_home is None or game.final_score_away is None:
        return None
    return game.final_score_home - game.final_score_away


def tiebreaker_abs_error(prediction, actual):
    """Absolute tiebreaker error when both values are known"""
    if prediction is None or actual is None:
        return None
    return abs(prediction - actual)


def count_scorable_games(games):
    """Number of decided games with a non-tie winner"""
    total = 0
    for game in games:
        if not game.decided:
            continue
        if effective_winner(game) in ("home", "away"):
            total += 1
    return total


def compute_week_score(
    picks,
    games,
    points_per_correct=1,
    tiebreaker_event_key=None,
    tiebreaker_prediction=None,
):
    """
    Score one user's week.

    The total is the number of decided non-tie games in the whole week, picked
    or not, so members without picks still get a comparable 0/total line.

    Args:
        picks: mapping of event key -> "home" | "away" (may be empty or None)
        games: Game-like objects for the week
        points_per_correct: points for each correct pick (None means 1)
        tiebreaker_event_key: event key of the designated tiebreaker game
        tiebreaker_prediction: user's predicted home-minus-away differential

    Returns:
        WeekScoreResult
    """
    if points_per_correct is None:
        points_per_correct = 1

    by_key = {game.event_key: game for game in games}

    correct = 0
    for event_key, choice in (picks or {}).items():
        game = by_key.get(event_key)
        if game is None or not game.decided:
            continue
        winner = effective_winner(game)
        if winner == "tie" or winner is None:
            continue
        if choice == winner:
            correct += 1

    tb_game = by_key.get(tiebreaker_event_key) if tiebreaker_event_key else None
    actual = tiebreaker_actual(tb_game)

    return WeekScoreResult(
        correct=correct,
        total=count_scorable_games(games),
        points=correct * points_per_correct,
        tiebreaker_prediction=tiebreaker_prediction,
        tiebreaker_actual=actual,
        tiebreaker_abs_error=tiebreaker_abs_error(tiebreaker_prediction, actual),
    )
