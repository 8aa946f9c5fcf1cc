"""
Tests for the circle-method round robin: pair coverage, rounds, byes.
"""

from itertools import combinations

import pytest

from kickoff.services.round_robin import (
    Seat,
    round_robin_rounds,
    rr_match_count,
    rr_round_count,
)


def _teams(n):
    return [f"T{i}" for i in range(1, n + 1)]


class TestCounts:
    def test_round_count(self):
        assert rr_round_count(1) == 0
        assert rr_round_count(2) == 1
        assert rr_round_count(4) == 3
        assert rr_round_count(5) == 5

    def test_match_count(self):
        assert rr_match_count(0) == 0
        assert rr_match_count(4) == 6
        assert rr_match_count(7) == 21


class TestRoundRobinRounds:
    @pytest.mark.parametrize("n", range(2, 13))
    def test_every_pair_exactly_once(self, n):
        teams = _teams(n)
        pairs = [frozenset(p) for rnd in round_robin_rounds(teams) for p in rnd]

        assert len(pairs) == rr_match_count(n)
        assert set(pairs) == {frozenset(p) for p in combinations(teams, 2)}

    @pytest.mark.parametrize("n", range(2, 13))
    def test_no_team_twice_in_a_round(self, n):
        for rnd in round_robin_rounds(_teams(n)):
            seen = [t for pair in rnd for t in pair]
            assert len(seen) == len(set(seen))

    @pytest.mark.parametrize("n", [3, 5, 7, 9])
    def test_odd_count_gives_one_bye_each(self, n):
        teams = _teams(n)
        rounds = round_robin_rounds(teams)

        assert len(rounds) == n
        byes = {t: 0 for t in teams}
        for rnd in rounds:
            playing = {t for pair in rnd for t in pair}
            assert len(rnd) == (n - 1) // 2
            for t in set(teams) - playing:
                byes[t] += 1
        assert all(count == 1 for count in byes.values())

    @pytest.mark.parametrize("n", [2, 4, 6, 8])
    def test_even_count_rounds(self, n):
        rounds = round_robin_rounds(_teams(n))
        assert len(rounds) == n - 1
        assert all(len(rnd) == n // 2 for rnd in rounds)

    def test_bye_seat_never_emitted(self):
        for rnd in round_robin_rounds(_teams(5)):
            for home, away in rnd:
                assert home is not Seat.BYE and away is not Seat.BYE

    def test_bye_literal_string_is_a_real_team(self):
        # A team literally named "bye" must still play everyone
        teams = ["bye", "B", "C"]
        pairs = [p for rnd in round_robin_rounds(teams) for p in rnd]
        assert sum(1 for p in pairs if "bye" in p) == 2

    def test_fewer_than_two_teams(self):
        assert round_robin_rounds([]) == []
        assert round_robin_rounds(["solo"]) == []

    def test_deterministic(self):
        assert round_robin_rounds(_teams(6)) == round_robin_rounds(_teams(6))

