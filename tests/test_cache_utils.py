from pickem.utils.cache_utils import cached_league_query, invalidate_league_cache, league_generation


def test_cached_per_league_and_invalidated_per_league(app):
    calls = []

    @cached_league_query("standings")
    def standings(league_id):
        calls.append(league_id)
        return [league_id, len(calls)]

    assert standings("lg1") == ["lg1", 1]
    assert standings("lg1") == ["lg1", 1]
    assert standings("lg2") == ["lg2", 2]

    invalidate_league_cache("standings", "lg1")

    assert league_generation("standings", "lg1") == 1
    assert league_generation("standings", "lg2") == 0
    assert standings("lg1") == ["lg1", 3]
    assert standings("lg2") == ["lg2", 2]


def test_empty_results_are_cached(app):
    calls = []

    @cached_league_query("standings")
    def empty(league_id):
        calls.append(league_id)
        return []

    empty("lg1")
    empty("lg1")
    assert calls == ["lg1"]
