"""
Reincarnation Page
Preview and confirm a reincarnation, and pick a farming range.
"""
import streamlit as st

from tower_idle.actions import confirm_reincarnation, farming_ranges, set_farming_mode
from tower_idle.core.numbers import format_number
from tower_idle.reincarnation import get_start_floor_options, preview_reincarnation
from utils.data_manager import apply_action, get_game_session, set_battle_visible

st.set_page_config(page_title="Reincarnation", page_icon="♻️", layout="wide")

session = get_game_session()
set_battle_visible(False)
state = session.state
player = state.player

st.title("♻️ Reincarnation")

preview = preview_reincarnation(state)
col1, col2, col3 = st.columns(3)
with col1:
    st.metric("Stones to gain", format_number(preview.stones_gained))
with col2:
    st.metric("Highest start floor", preview.max_start_floor)
with col3:
    st.metric("Items kept", preview.kept_items)

if preview.stones_gained == 0:
    st.caption("Stones are earned from floor 100 onwards.")

start_floor = st.selectbox("Start floor", get_start_floor_options(player), index=len(get_start_floor_options(player)) - 1)

confirm = st.checkbox("I understand my level, gold, job and merchant upgrades will reset")
if st.button("♻️ Reincarnate", disabled=not confirm):
    apply_action(confirm_reincarnation, start_floor, session.config)
    st.success("Reincarnated!")
    st.rerun()

st.divider()

# =============================================================================
# FARMING
# =============================================================================

st.subheader("🌾 Farming Mode")
if player.reincarnation_upgrades.farming <= 0:
    st.caption("Unlock the Farming reincarnation upgrade to loop a cleared floor range.")
else:
    ranges = farming_ranges(player.max_floor_reached)
    options = [None] + ranges
    current = state.farming_mode if state.farming_mode in ranges else None
    choice = st.selectbox(
        "Range",
        options,
        index=options.index(current),
        format_func=lambda mode: "Off (climb normally)" if mode is None else mode.label,
    )
    if choice != state.farming_mode:
        apply_action(set_farming_mode, choice)
        st.rerun()
