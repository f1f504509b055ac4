"""
Results reconciliation

Maps provider score records onto locally stored games. A game is matched by
the provider event id first; only when no record carries that id does the
fuzzy key (normalized away@home plus UTC calendar day) apply. Only completed
records with usable scores for both teams produce an update, and games that
are already decided are never examined.
"""

import logging
import re
from collections import namedtuple

from pickem.utils.odds_api import OddsApiClient
from pickem.utils.timezone_utils import utc_date_string

logger = logging.getLogger(__name__)

ResultUpdate = namedtuple("ResultUpdate", ["event_key", "home_score", "away_score"])

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_team(name):
    """Lowercase, drop periods, collapse whitespace ("St. John's " -> "st john's")"""
    if not name:
        return ""
    name = str(name).lower().replace(".", "")
    return _WHITESPACE_RE.sub(" ", name).strip()


def match_key(away, home, start_time):
    """Composite fuzzy key: "away@home#YYYY-MM-DD" with the day taken in UTC"""
    return f"{normalize_team(away)}@{normalize_team(home)}#{utc_date_string(start_time)}"


def parse_score(value):
    """
    Coerce a provider score to an int

    Accepts ints, integral floats and numeric strings; anything else
    (booleans, fractions, garbage, None) yields None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if number.is_integer() else None
    return None


class ProviderScore:
    """One provider score record, parsed leniently"""

    def __init__(self, record):
        record = record if isinstance(record, dict) else {}
        self.event_id = str(record.get("id") or "").strip()
        self.home_team = record.get("home_team") or ""
        self.away_team = record.get("away_team") or ""
        self.commence_time = record.get("commence_time")
        self.completed = record.get("completed") is True

        self.scores = {}
        raw_scores = record.get("scores")
        if isinstance(raw_scores, list):
            for entry in raw_scores:
                if not isinstance(entry, dict):
                    continue
                name = normalize_team(entry.get("name"))
                if name:
                    self.scores[name] = entry.get("score")
        self.score_count = len(raw_scores) if isinstance(raw_scores, list) else 0

    def __repr__(self):
        return f"<ProviderScore {self.event_id} {self.away_team} @ {self.home_team}>"

    @property
    def key(self):
        return match_key(self.away_team, self.home_team, self.commence_time)

    def score_for(self, *names):
        """Raw score for the first of names present in the record"""
        for name in names:
            normalized = normalize_team(name)
            if normalized and normalized in self.scores:
                return self.scores[normalized]
        return None


def _update_from_record(game, record, by_id):
    if not record.completed or record.score_count < 2:
        return None

    # Id matches may also use the provider's own team names
    home_names = [game.home]
    away_names = [game.away]
    if by_id:
        home_names.append(record.home_team)
        away_names.append(record.away_team)

    home_score = parse_score(record.score_for(*home_names))
    away_score = parse_score(record.score_for(*away_names))
    if home_score is None or away_score is None:
        logger.debug(f"Unusable scores in {record!r} for {game!r}")
        return None

    return ResultUpdate(game.event_key, home_score, away_score)


def match_results(games, records):
    """
    Compute result updates for undecided games

    Args:
        games: Game-like objects (event_key, home, away, start_time, decided)
        records: raw provider score records

    Returns:
        list of ResultUpdate
    """
    parsed = [ProviderScore(record) for record in records or []]

    by_id = {}
    by_key = {}
    for record in parsed:
        if record.event_id:
            by_id.setdefault(record.event_id, record)
        by_key.setdefault(record.key, record)

    updates = []
    for game in games:
        if game.decided:
            continue

        provider_id = game.provider_event_id
        record = by_id.get(provider_id) if provider_id else None
        if record is not None:
            update = _update_from_record(game, record, by_id=True)
        else:
            record = by_key.get(match_key(game.away, game.home, game.start_time))
            if record is None:
                logger.debug(f"No provider record for {game!r}")
                continue
            update = _update_from_record(game, record, by_id=False)

        if update is not None:
            updates.append(update)

    return updates


class ResultsSync:
    """Pulls provider scores for a week and applies them to undecided games"""

    def __init__(self, client, short_lookback_days=3, long_lookback_days=14):
        self.client = client
        self.short_lookback_days = short_lookback_days
        self.long_lookback_days = long_lookback_days

    @classmethod
    def from_config(cls, config):
        return cls(
            OddsApiClient.from_config(config),
            short_lookback_days=config.get("RESULTS_SHORT_LOOKBACK_DAYS", 3),
            long_lookback_days=config.get("RESULTS_LONG_LOOKBACK_DAYS", 14),
        )

    def fetch_records(self, sport_key, event_ids=None):
        """Short lookback first, widened once when it comes back empty"""
        records = self.client.list_scores(
            sport_key, days_from=self.short_lookback_days, event_ids=event_ids
        )
        if not records and self.long_lookback_days:
            records = self.client.list_scores(
                sport_key, days_from=self.long_lookback_days, event_ids=event_ids
            )
        return records

    def sync_week(self, store, week, sport_key, use_event_ids=False):
        """
        Apply provider results to a week's undecided games

        Args:
            use_event_ids: narrow the provider query to the games' event ids,
                widening to an unfiltered query if that finds nothing (keys
                entered by hand rarely match provider ids)

        Returns:
            list of event keys updated (not committed)
        """
        games = store.list_undecided_games(week)
        if not games:
            return []

        records = []
        if use_event_ids:
            event_ids = sorted(
                {game.provider_event_id for game in games if game.provider_event_id}
            )
            records = self.fetch_records(sport_key, event_ids=event_ids)
        if not records:
            records = self.fetch_records(sport_key)
        if not records:
            logger.info(f"No provider results for {week.league_id}/{week.week_id}")
            return []

        updates = match_results(games, records)
        applied = store.apply_game_results(week, updates)
        if applied:
            logger.info(
                f"Applied {len(applied)} results to {week.league_id}/{week.week_id}: {applied}"
            )
        return applied
