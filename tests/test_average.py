from __future__ import annotations

import pytest

from radiofeeds.core.average import DEFAULT_SMOOTHING, resolve_previous, update
from radiofeeds.core.models import AverageState
from radiofeeds.errors import InvalidArgument


def _ramp() -> AverageState:
    return AverageState(hour_buckets=tuple(float(h * 10) for h in range(24)))


class TestUpdate:
    @pytest.mark.parametrize("hour", [0, 7, 23])
    @pytest.mark.parametrize("smoothing", [1, 2, 5, 50])
    def test_only_target_hour_changes(self, hour: int, smoothing: int):
        previous = _ramp()
        result = update(hour, smoothing, 1000, previous)

        for h in range(24):
            if h == hour:
                continue
            assert result.hour_buckets[h] == previous.hour_buckets[h]
        assert result.hour_buckets[hour] != previous.hour_buckets[hour]

    def test_default_smoothing_moves_one_fifth(self):
        previous = AverageState.seeded(100)
        result = update(3, DEFAULT_SMOOTHING, 200, previous)
        assert result.at(3) == pytest.approx(120.0)

    def test_previous_is_not_mutated(self):
        previous = AverageState.seeded(50)
        update(5, 5, 500, previous)
        assert previous.hour_buckets == (50.0,) * 24

    @pytest.mark.parametrize("start, target", [(0.0, 100), (500.0, 3), (42.0, 42)])
    def test_converges_without_overshoot(self, start: float, target: int):
        state = AverageState.seeded(start)
        distances = []
        for _ in range(60):
            state = update(12, 5, target, state)
            value = state.at(12)
            if start <= target:
                assert value <= target
            else:
                assert value >= target
            distances.append(abs(target - value))
        assert all(b <= a for a, b in zip(distances, distances[1:]))
        assert distances[-1] < 1e-3

    def test_smoothing_one_jumps_to_observed(self):
        assert update(0, 1, 77, AverageState.seeded(3)).at(0) == 77.0

    @pytest.mark.parametrize("smoothing", [0, -1])
    def test_invalid_smoothing(self, smoothing: int):
        with pytest.raises(InvalidArgument):
            update(0, smoothing, 10, AverageState.seeded(1))

    @pytest.mark.parametrize("hour", [-1, 24])
    def test_invalid_hour(self, hour: int):
        with pytest.raises(InvalidArgument):
            update(hour, 5, 10, AverageState.seeded(1))


class TestResolvePrevious:
    def test_existing_entry_wins(self):
        stored = AverageState.seeded(9)
        assert resolve_previous("a", {"a": stored}, 100.0) is stored

    def test_new_feed_is_seeded_with_default(self):
        state = resolve_previous("new", {}, 100.0)
        assert state.hour_buckets == (100.0,) * 24

    def test_first_sight_update_equals_observation(self):
        state = update(8, 5, 100, resolve_previous("new", {}, 100.0))
        assert state.at(8) == 100.0


class TestAverageState:
    def test_requires_24_slots(self):
        with pytest.raises(ValueError):
            AverageState(hour_buckets=(1.0,) * 23)

    def test_rejects_non_finite(self):
        with pytest.raises(ValueError):
            AverageState(hour_buckets=(float("nan"),) * 24)
