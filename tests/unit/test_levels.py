"""Level curve tests: floor(xp / 100) + 1 for accounts and pets."""

import pytest

from petnet.xp.levels import XP_PER_LEVEL, level_from_xp, level_info, xp_for_level


class TestLevelFromXP:
    @pytest.mark.parametrize(
        ("xp", "level"),
        [(0, 1), (99, 1), (100, 2), (199, 2), (250, 3), (1000, 11)],
    )
    def test_levels(self, xp, level):
        assert level_from_xp(xp) == level

    def test_negative_xp_is_level_1(self):
        assert level_from_xp(-50) == 1


class TestXPForLevel:
    def test_level_1_starts_at_zero(self):
        assert xp_for_level(1) == 0

    def test_level_3_starts_at_200(self):
        assert xp_for_level(3) == 200

    def test_round_trip_at_boundaries(self):
        for level in range(1, 20):
            assert level_from_xp(xp_for_level(level)) == level


class TestLevelInfo:
    def test_fresh_account(self):
        info = level_info(0)
        assert info == {
            "level": 1,
            "xp_into_level": 0,
            "xp_for_level": XP_PER_LEVEL,
            "next_level": 2,
            "percentage": 0.0,
        }

    def test_mid_level(self):
        info = level_info(150)
        assert info["level"] == 2
        assert info["xp_into_level"] == 50
        assert info["percentage"] == 50.0

    def test_exact_boundary(self):
        info = level_info(300)
        assert info["level"] == 4
        assert info["xp_into_level"] == 0
