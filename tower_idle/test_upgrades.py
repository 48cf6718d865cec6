"""
Tests for upgrade catalogs, costs and caps.
"""
import math

import pytest

from tower_idle.core.constants import EquipmentRank
from tower_idle.upgrades import (
    MERCHANT_CATALOG,
    REINCARNATION_CATALOG,
    MerchantUpgrade,
    MerchantUpgrades,
    ReincarnationUpgrade,
    ReincarnationUpgrades,
    apply_discount,
    get_percent_reduction,
    get_persistence_ranks,
    is_merchant_maxed,
    is_reincarnation_maxed,
    list_one_time_upgrades,
    merchant_upgrade_cost,
    reincarnation_upgrade_cost,
)


class TestCatalogs:
    """Tests for catalogs."""

    def test_every_key_has_an_entry(self):
        assert set(MERCHANT_CATALOG) == set(MerchantUpgrade)
        assert set(REINCARNATION_CATALOG) == set(ReincarnationUpgrade)

    def test_every_key_has_a_level_field(self):
        merchant = MerchantUpgrades()
        reinc = ReincarnationUpgrades()
        for key in MerchantUpgrade:
            assert merchant.level(key) == 0
        for key in ReincarnationUpgrade:
            assert reinc.level(key) == 0

    def test_one_time_upgrades(self):
        one_time = list_one_time_upgrades()
        assert ReincarnationUpgrade.AUTO_PROMOTE in one_time
        assert ReincarnationUpgrade.ITEM_PERSISTENCE not in one_time


class TestLevelRecords:
    """Tests for level records."""

    def test_with_level_is_a_copy(self):
        base = MerchantUpgrades()
        upgraded = base.with_level(MerchantUpgrade.CRIT_DAMAGE, 4)
        assert upgraded.crit_damage == 4
        assert base.crit_damage == 0

    def test_from_dict_defaults(self):
        record = ReincarnationUpgrades.from_dict({'xp_boost': 3, 'unknown': 7, 'farming': None})
        assert record.xp_boost == 3
        assert record.farming == 0

    def test_round_trip(self):
        record = MerchantUpgrades(attack_bonus=5, giant_killing=2)
        assert MerchantUpgrades.from_dict(record.to_dict()) == record


class TestCosts:
    """Tests for costs."""

    def test_merchant_growth(self):
        assert merchant_upgrade_cost(MerchantUpgrade.ATTACK_BONUS, 0) == 1000
        assert merchant_upgrade_cost(MerchantUpgrade.ATTACK_BONUS, 2) == 2250

    def test_discount(self):
        assert get_percent_reduction(1) == 1
        assert get_percent_reduction(100) == 99
        assert apply_discount(1000, 2) == 970

    def test_reincarnation_growth(self):
        assert reincarnation_upgrade_cost(ReincarnationUpgrade.XP_BOOST, 0) == 100
        assert reincarnation_upgrade_cost(ReincarnationUpgrade.XP_BOOST, 1) == 120

    def test_persistence_costs(self):
        assert reincarnation_upgrade_cost(ReincarnationUpgrade.ITEM_PERSISTENCE, 0) == 10 ** 7
        assert reincarnation_upgrade_cost(ReincarnationUpgrade.ITEM_PERSISTENCE, 2) == 10 ** 11
        assert reincarnation_upgrade_cost(ReincarnationUpgrade.ITEM_PERSISTENCE, 3) == math.inf

    def test_maxed_cost_infinite(self):
        assert reincarnation_upgrade_cost(ReincarnationUpgrade.AUTO_EQUIP, 1) == math.inf


class TestCaps:
    """Tests for caps."""

    def test_crit_rate_cap(self):
        assert not is_merchant_maxed(MerchantUpgrade.CRIT_RATE, 49)
        assert is_merchant_maxed(MerchantUpgrade.CRIT_RATE, 50)
        assert not is_merchant_maxed(MerchantUpgrade.ATTACK_BONUS, 10 ** 6)

    @pytest.mark.parametrize("key", [ReincarnationUpgrade.PRICE_DISCOUNT, ReincarnationUpgrade.ENEMY_HP_DOWN])
    def test_percent_upgrades_stop_at_99(self, key):
        """L(L+1)/2 first reaches 99 at level 14."""
        assert not is_reincarnation_maxed(key, 13)
        assert is_reincarnation_maxed(key, 14)

    def test_persistence_ranks(self):
        assert get_persistence_ranks(0) == []
        assert get_persistence_ranks(1) == [EquipmentRank.B]
        assert get_persistence_ranks(3) == [EquipmentRank.B, EquipmentRank.A, EquipmentRank.S]
