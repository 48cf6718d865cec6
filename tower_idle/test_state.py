"""
Tests for state snapshots and the log buffer.
"""
from tower_idle.core.constants import ActiveSkill, EquipmentRank, EquipmentType
from tower_idle.equipment import Equipment
from tower_idle.state import (
    FarmingMode,
    GameState,
    LogEntry,
    LogType,
    Player,
    append_logs,
    create_log,
    find_item,
    replace_item,
)


class TestLogs:
    """Tests for logs."""

    def test_capacity_keeps_newest(self):
        logs = [create_log(str(i), timestamp=i) for i in range(50)]
        result = append_logs(logs, [create_log("new", timestamp=50)])
        assert len(result) == 50
        assert result[0].message == "1"
        assert result[-1].message == "new"
        assert len(logs) == 50

    def test_with_logs_is_a_copy(self):
        state = GameState()
        result = state.with_logs(create_log("a"))
        assert state.logs == []
        assert [entry.message for entry in result.logs] == ["a"]

    def test_unique_ids(self):
        assert create_log("a").id != create_log("a").id

    def test_unknown_type_defaults_to_info(self):
        entry = LogEntry.from_dict({'message': 'x', 'type': 'sparkle'})
        assert entry.type == LogType.INFO


class TestPlayer:
    """Tests for player."""

    def test_defaults(self):
        player = Player()
        assert player.level == 1
        assert player.required_xp == 50
        assert player.base_attack == 10
        assert player.floor == 1

    def test_drop_preference_default_enabled(self):
        assert Player().is_drop_enabled(EquipmentType.ARMOR)

    def test_from_dict_repairs_max_floor(self):
        player = Player.from_dict({'floor': 80, 'max_floor_reached': 20})
        assert player.max_floor_reached == 80

    def test_from_dict_unknown_job(self):
        assert Player.from_dict({'job': 'astronaut'}) == Player()


class TestGameState:
    """Tests for game state."""

    def test_fresh_skills_inactive(self):
        state = GameState()
        assert not any(state.is_skill_active(skill) for skill in ActiveSkill)

    def test_farming_label(self):
        assert FarmingMode(1, 100).label == "1-100F"


class TestInventoryHelpers:
    """Tests for inventory helpers."""

    def test_replace_item(self):
        a = Equipment.create(EquipmentType.WEAPON, 1, item_id="a")
        b = Equipment.create(EquipmentType.HELM, 1, item_id="b")
        upgraded = a.with_enhancement(EquipmentRank.C, 0)
        inventory = [a, b]
        result = replace_item(inventory, upgraded)
        assert result == [upgraded, b]
        assert inventory == [a, b]

    def test_replace_appends_missing(self):
        a = Equipment.create(EquipmentType.WEAPON, 1, item_id="a")
        assert replace_item([], a) == [a]

    def test_find_item(self):
        a = Equipment.create(EquipmentType.WEAPON, 1, item_id="a")
        assert find_item([a], "a") is a
        assert find_item([a], "z") is None
