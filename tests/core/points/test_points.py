"""Tests for points resources and their bursts."""

from dataclasses import dataclass
from typing import Optional

from src.core.points.points import PointsBurst, RecordPoints, TempPoints


@dataclass
class FakeRecord:
    health: Optional[int] = None


class TestPointsBurst:

    def test_extra_turns_are_consumed_first(self):
        burst = PointsBurst(-2, 2, extra_turn_count=1)
        burst.advance()
        assert (burst.turn_count, burst.extra_turn_count) == (2, 0)
        burst.advance()
        assert burst.turn_count == 1
        assert not burst.is_finished()
        burst.advance()
        assert burst.is_finished()

    def test_direction_and_verb(self):
        assert PointsBurst(3, 1).has_direction(1)
        assert not PointsBurst(3, 1).has_direction(-1)
        assert PointsBurst(-3, 1).get_verb() == "lower"
        assert PointsBurst(3, 1).get_verb() == "raise"

    def test_to_json(self):
        assert PointsBurst(4, 2, 1).to_json() == {"offset": 4, "turnCount": 2}


class TestTempPoints:

    def test_initial_value_is_clamped(self):
        assert TempPoints(0, 10, 15).get_value() == 10
        assert TempPoints(0, 10, -3).get_value() == 0

    def test_offset_returns_actual_delta(self):
        points = TempPoints(0, 10, 9)
        assert points.offset_value(5) == 1
        assert points.get_value() == 10
        assert points.offset_value(-30) == -10
        assert points.get_value() == 0

    def test_unbounded_maximum(self):
        points = TempPoints(0, None, 0)
        points.offset_value(10000)
        assert points.get_value() == 10000

    def test_effective_value_uses_extreme_bursts_only(self):
        points = TempPoints(0, 20, 10)
        points.add_burst(PointsBurst(2, 2))
        points.add_burst(PointsBurst(3, 2))
        points.add_burst(PointsBurst(-2, 2))
        # 10 + 3 - 2
        assert points.get_effective_value() == 11
        assert points.get_value() == 10

    def test_effective_value_is_clamped(self):
        points = TempPoints(0, 10, 9)
        points.add_burst(PointsBurst(5, 1))
        assert points.get_effective_value() == 10

    def test_same_offset_burst_keeps_longer_duration(self):
        points = TempPoints(0, 10, 5)
        points.add_burst(PointsBurst(2, 3))
        points.add_burst(PointsBurst(2, 1))
        assert len(points.bursts) == 1
        assert points.bursts[0].turn_count == 3

        points.add_burst(PointsBurst(2, 4))
        assert len(points.bursts) == 1
        assert points.bursts[0].turn_count == 4

    def test_process_bursts_drops_finished(self):
        points = TempPoints(0, 10, 5)
        points.add_burst(PointsBurst(2, 1))
        points.add_burst(PointsBurst(-1, 2))
        points.process_bursts()
        assert [burst.offset for burst in points.bursts] == [-1]

    def test_clear_bursts_by_direction(self):
        points = TempPoints(0, 10, 5)
        points.add_burst(PointsBurst(2, 2))
        points.add_burst(PointsBurst(-1, 2))
        assert points.clear_bursts(-1)
        assert [burst.offset for burst in points.bursts] == [2]
        assert not points.clear_bursts(-1)
        assert points.clear_bursts()
        assert points.bursts == []

    def test_to_json(self):
        points = TempPoints(0, 10, 4)
        points.add_burst(PointsBurst(1, 2))
        assert points.to_json() == {
            "value": 4,
            "minimumValue": 0,
            "maximumValue": 10,
            "bursts": [{"offset": 1, "turnCount": 2}],
        }


class TestRecordPoints:

    def test_missing_field_gets_default(self):
        record = FakeRecord()
        points = RecordPoints(0, 25, record, "health", 25)
        assert record.health == 25
        assert points.get_value() == 25

    def test_existing_value_is_reclamped(self):
        record = FakeRecord(health=40)
        RecordPoints(0, 25, record, "health", 25)
        assert record.health == 25

    def test_writes_go_to_record(self):
        record = FakeRecord(health=10)
        points = RecordPoints(0, 25, record, "health", 25)
        points.offset_value(-4)
        assert record.health == 6
