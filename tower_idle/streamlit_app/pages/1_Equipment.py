"""
Equipment Page
Equipped slots, set bonus, inventory, synthesis and drop preferences.
"""
import streamlit as st

from tower_idle.actions import bulk_synthesize, equip, synthesize, toggle_drop_preference
from tower_idle.core.constants import EQUIPMENT_SLOTS, RANK_COLORS, RANK_ORDER
from tower_idle.core.numbers import format_number
from tower_idle.equipment import calculate_collection_bonus, get_set_bonus
from tower_idle.synthesis import find_material
from utils.data_manager import apply_action, get_game_session, set_battle_visible

st.set_page_config(page_title="Equipment", page_icon="🗡️", layout="wide")

session = get_game_session()
set_battle_visible(False)
state = session.state

SLOT_ICONS = {
    "weapon": "🗡️",
    "helm": "⛑️",
    "armor": "🥋",
    "shield": "🛡️",
}


def item_html(item) -> str:
    color = RANK_COLORS[item.rank]
    return (f'<span style="color:{color};font-weight:bold">{item.label}</span> '
            f'<span style="color:#888">T{item.tier} · {format_number(item.power)}</span>')


st.title("🗡️ Equipment")

# =============================================================================
# EQUIPPED
# =============================================================================

cols = st.columns(len(EQUIPMENT_SLOTS))
for col, slot in zip(cols, EQUIPMENT_SLOTS):
    with col:
        st.markdown(f"**{SLOT_ICONS[slot.value]} {slot.value.title()}**")
        item = state.equipped.get(slot)
        if item is None:
            st.caption("Empty")
        else:
            st.markdown(item_html(item), unsafe_allow_html=True)

set_bonus = get_set_bonus(state.equipped)
col1, col2, col3 = st.columns(3)
with col1:
    st.metric("Set Bonus", f"T{set_bonus.active_tier} x{set_bonus.count}" if set_bonus.count else "-")
with col2:
    st.metric("Set Attack / Skill", f"x{set_bonus.attack_multiplier} / x{set_bonus.skill_multiplier}")
with col3:
    st.metric("Collection Bonus", format_number(calculate_collection_bonus(state.inventory, state.equipped)))

st.divider()

# =============================================================================
# INVENTORY
# =============================================================================

header_col, bulk_col = st.columns([3, 1])
with header_col:
    st.subheader(f"Inventory ({len(state.inventory)})")
with bulk_col:
    if st.button("⚒️ Enhance All"):
        apply_action(bulk_synthesize, session.config)
        st.rerun()

slot_filter = st.selectbox(
    "Slot",
    ["all"] + [slot.value for slot in EQUIPMENT_SLOTS],
    format_func=lambda s: s.title(),
)
items = [item for item in state.inventory if slot_filter == "all" or item.type.value == slot_filter]
items.sort(key=lambda i: (RANK_ORDER.index(i.rank), i.plus, i.tier), reverse=True)

if not items:
    st.info("No items yet. Keep climbing!")

for item in items:
    col_name, col_equip, col_merge = st.columns([4, 1, 1])
    with col_name:
        prefix = "✅ " if item.is_equipped else ""
        st.markdown(prefix + item_html(item), unsafe_allow_html=True)
    with col_equip:
        if st.button("Equip", key=f"equip_{item.id}", disabled=item.is_equipped):
            apply_action(equip, item.id)
            st.rerun()
    with col_merge:
        can_merge = not item.is_terminal and find_material(state.inventory, item) is not None
        if st.button("Merge", key=f"merge_{item.id}", disabled=not can_merge):
            apply_action(synthesize, item.id)
            st.rerun()

st.divider()

# =============================================================================
# DROP PREFERENCES
# =============================================================================

st.subheader("Drop Preferences")
if state.player.reincarnation_upgrades.item_filter <= 0:
    st.caption("Unlock the Item Filter reincarnation upgrade to choose which slots can drop.")
else:
    cols = st.columns(len(EQUIPMENT_SLOTS))
    for col, slot in zip(cols, EQUIPMENT_SLOTS):
        with col:
            enabled = state.player.is_drop_enabled(slot)
            new_value = st.checkbox(slot.value.title(), value=enabled, key=f"pref_{slot.value}")
            if new_value != enabled:
                apply_action(toggle_drop_preference, slot)
                st.rerun()
