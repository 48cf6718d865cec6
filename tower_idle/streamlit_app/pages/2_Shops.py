"""
Shops Page
Merchant upgrades (gold) and reincarnation upgrades (stones).
"""
import streamlit as st

from tower_idle.actions import (
    buy_max_merchant_upgrade,
    buy_merchant_upgrade,
    buy_reincarnation_upgrade,
    toggle_auto_merchant,
)
from tower_idle.core.numbers import format_number
from tower_idle.upgrades import (
    MERCHANT_CATALOG,
    REINCARNATION_CATALOG,
    is_merchant_maxed,
    is_reincarnation_maxed,
    merchant_upgrade_cost,
    reincarnation_upgrade_cost,
)
from utils.data_manager import apply_action, get_game_session, set_battle_visible

st.set_page_config(page_title="Shops", page_icon="🛒", layout="wide")

session = get_game_session()
set_battle_visible(False)
player = session.state.player

st.title("🛒 Shops")

tab_merchant, tab_reinc = st.tabs(["Merchant", "Reincarnation"])

with tab_merchant:
    st.metric("Gold", format_number(player.gold))
    auto_owned = player.reincarnation_upgrades.auto_merchant > 0
    discount = player.reincarnation_upgrades.price_discount

    for key, info in MERCHANT_CATALOG.items():
        level = player.merchant_upgrades.level(key)
        maxed = is_merchant_maxed(key, level)
        cost = merchant_upgrade_cost(key, level, discount)

        col_name, col_buy, col_max, col_auto = st.columns([3, 1, 1, 1])
        with col_name:
            st.markdown(f"**{info.name}** Lv.{level}" + (" (MAX)" if maxed else ""))
            st.caption(info.description)
        with col_buy:
            label = "MAX" if maxed else f"{format_number(cost)} G"
            if st.button(label, key=f"buy_{key.value}", disabled=maxed or player.gold < cost):
                apply_action(buy_merchant_upgrade, key)
                st.rerun()
        with col_max:
            if st.button("Buy Max", key=f"buymax_{key.value}", disabled=maxed or player.gold < cost):
                apply_action(buy_max_merchant_upgrade, key)
                st.rerun()
        with col_auto:
            if auto_owned:
                enabled = player.is_auto_merchant_enabled(key)
                if st.checkbox("Auto", value=enabled, key=f"auto_{key.value}") != enabled:
                    apply_action(toggle_auto_merchant, key)
                    st.rerun()

with tab_reinc:
    st.metric("Reincarnation Stones", format_number(player.reincarnation_stones))

    for key, info in REINCARNATION_CATALOG.items():
        level = player.reincarnation_upgrades.level(key)
        maxed = is_reincarnation_maxed(key, level)
        cost = reincarnation_upgrade_cost(key, level)

        col_name, col_buy = st.columns([4, 1])
        with col_name:
            st.markdown(f"**{info.name}** Lv.{level}" + (" (MAX)" if maxed else ""))
            st.caption(info.description)
        with col_buy:
            label = "MAX" if maxed else f"{format_number(cost)} 💎"
            if st.button(label, key=f"reinc_{key.value}", disabled=maxed or player.reincarnation_stones < cost):
                apply_action(buy_reincarnation_upgrade, key)
                st.rerun()
