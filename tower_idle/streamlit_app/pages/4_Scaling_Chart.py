"""
Scaling Chart Page
Enemy stats and drop odds by floor.
"""
import streamlit as st

from tower_idle.core.numbers import format_number
from tower_idle.core.scaling import generate_enemy
from tower_idle.game_loop import calculate_total_attack
from utils.data_manager import get_game_session, set_battle_visible
from utils.scaling_chart import create_drop_odds_chart, create_enemy_scaling_chart

st.set_page_config(page_title="Scaling Chart", page_icon="📈", layout="wide")

set_battle_visible(False)
state = get_game_session().state
player = state.player

st.title("📈 Floor Scaling")

col1, col2 = st.columns(2)
with col1:
    start = st.number_input("From floor", min_value=1, value=max(1, player.floor - 50), step=10)
with col2:
    end = st.number_input("To floor", min_value=1, value=max(player.floor + 150, 200), step=10)

hp_down = player.reincarnation_upgrades.enemy_hp_down
damage = calculate_total_attack(player, state.equipped, state.inventory)

fig = create_enemy_scaling_chart(int(start), int(end), hp_down, damage)
st.plotly_chart(fig, use_container_width=True)

enemy = generate_enemy(player.floor, hp_down)
st.caption(f"Floor {player.floor}: {enemy.name}, HP {format_number(enemy.max_hp)}, "
           f"hits to kill ≈ {format_number(-(-enemy.max_hp // max(1, damage)))}")

st.divider()
st.subheader("Drop Odds Across the Current Tier")
tier_start = (player.floor - 1) // 500 * 500 + 1
st.plotly_chart(create_drop_odds_chart(tier_start), use_container_width=True)
