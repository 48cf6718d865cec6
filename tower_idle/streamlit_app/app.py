"""
Tower Idle - Streamlit Web App
Main entry point: battle view, save slots and speed controls.

Run with:
    streamlit run tower_idle/streamlit_app/app.py
"""
import logging
import os

import streamlit as st

from tower_idle.actions import activate_skill, change_job, dismiss_rare_drop, toggle_auto_battle
from tower_idle.core.constants import RANK_COLORS, ActiveSkill
from tower_idle.core.numbers import format_number
from tower_idle.game_loop import calculate_total_attack, preview_skills
from tower_idle.settings import GameSpeed
from tower_idle.state import LogType, now_ms
from tower_idle.upgrades import ACTIVE_SKILL_UPGRADES
from utils.data_manager import (
    apply_action,
    autosave,
    get_audio,
    get_game_session,
    list_save_slots,
    save_current,
    set_battle_visible,
    switch_slot,
)

# Battle fragment rerun interval
BATTLE_POLL_MS = 100

ASSETS_DIR = os.path.join(os.path.dirname(__file__), "assets")

# Page config
st.set_page_config(
    page_title="Tower Idle",
    page_icon="🗼",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    .stApp {
        background-color: #1a1a2e;
    }
    .main-title {
        color: #00d4ff;
        font-size: 2.2em;
        font-weight: bold;
        text-align: center;
        margin-bottom: 10px;
    }
    .log-line {
        font-family: monospace;
        font-size: 0.9em;
        margin: 0;
    }
</style>
""", unsafe_allow_html=True)

LOG_COLORS = {
    LogType.DAMAGE: "#cccccc",
    LogType.GAIN: "#00ff88",
    LogType.INFO: "#88aaff",
    LogType.BOSS: "#ffd700",
    LogType.DANGER: "#ff4444",
    LogType.CRIT: "#ff9800",
}


def sidebar():
    """Save slots, speed and toggles."""
    session = get_game_session()
    audio = get_audio()

    with st.sidebar:
        st.markdown(f"### 💾 Slot: `{st.session_state.save_slot}`")
        slots = list_save_slots()
        new_slot = st.text_input("Load / create slot", placeholder="slot name", key="slot_input")
        if slots:
            st.caption("Saved slots: " + ", ".join(slots))
        if st.button("Switch Slot") and new_slot:
            switch_slot(new_slot)
            st.rerun()

        if st.button("💾 Save Now"):
            if save_current():
                st.success("Game saved!")
            else:
                st.error("Failed to save")

        st.divider()
        speeds = list(GameSpeed)
        speed = st.radio(
            "Game speed",
            speeds,
            index=speeds.index(session.speed),
            format_func=lambda s: s.label,
            horizontal=True,
        )
        if speed != session.speed:
            session.set_speed(speed)

        battle_label = "⏸ Pause Battle" if session.state.auto_battle_enabled else "▶ Resume Battle"
        if st.button(battle_label):
            apply_action(toggle_auto_battle)
            st.rerun()

        sound_label = "🔇 Mute" if audio.enabled else "🔊 Unmute"
        if st.button(sound_label):
            audio.toggle()


def play_audio():
    """Play queued cues if their audio files exist."""
    audio = get_audio()
    for cue in audio.drain():
        path = os.path.join(ASSETS_DIR, f"{cue}.mp3")
        if os.path.exists(path):
            st.audio(path, autoplay=True)


def render_status():
    state = get_game_session().state
    player = state.player

    col1, col2, col3, col4, col5 = st.columns(5)
    with col1:
        st.metric("Floor", player.floor, help=f"Max reached: {player.max_floor_reached}")
    with col2:
        st.metric("Level", player.level)
    with col3:
        st.metric("Job", player.job.display_name, help=f"Job Lv.{player.job_level}")
    with col4:
        st.metric("Gold", format_number(player.gold))
    with col5:
        st.metric("Attack", format_number(calculate_total_attack(player, state.equipped, state.inventory)))

    xp_ratio = min(1.0, player.current_xp / player.required_xp) if player.required_xp else 0.0
    st.progress(xp_ratio, text=f"XP {format_number(player.current_xp)} / {format_number(player.required_xp)}")


def render_enemy():
    state = get_game_session().state
    enemy = state.enemy
    if enemy is None:
        st.info("Waiting for the next enemy...")
        return

    title = f"👑 {enemy.name}" if enemy.is_boss else enemy.name
    st.markdown(f"#### {title}")
    hp_ratio = enemy.current_hp / enemy.max_hp if enemy.max_hp else 0.0
    st.progress(max(0.0, min(1.0, hp_ratio)),
                text=f"HP {format_number(enemy.current_hp)} / {format_number(enemy.max_hp)}")
    if state.boss_timer is not None:
        st.progress(max(0.0, min(1.0, state.boss_timer / get_game_session().config.boss_time_limit)),
                    text=f"⏱ {state.boss_timer}s left")


def render_logs():
    state = get_game_session().state
    lines = []
    for entry in reversed(state.logs[-15:]):
        color = LOG_COLORS.get(entry.type, "#cccccc")
        lines.append(f'<p class="log-line" style="color:{color}">{entry.message}</p>')
    st.markdown("".join(lines), unsafe_allow_html=True)


@st.fragment(run_every=BATTLE_POLL_MS / 1000)
def battle_view():
    """Runs the ticks that came due since the last rerun, then redraws the battle."""
    session = get_game_session()
    set_battle_visible(True)
    session.run_pending(now_ms(), max_ticks=session.ticks_per_poll(BATTLE_POLL_MS))
    autosave()

    render_status()
    st.divider()
    col_enemy, col_log = st.columns([1, 1])
    with col_enemy:
        render_enemy()
    with col_log:
        render_logs()
    play_audio()


def render_skills():
    """Active skill buttons and skill trigger preview."""
    state = get_game_session().state
    now = now_ms()

    st.markdown("### ✨ Active Skills")
    cols = st.columns(len(ActiveSkill))
    for col, skill in zip(cols, ActiveSkill):
        level = state.player.reincarnation_upgrades.level(ACTIVE_SKILL_UPGRADES[skill])
        skill_state = state.active_skills.get(skill)
        with col:
            if level <= 0:
                st.button(f"🔒 {skill.display_name}", disabled=True, key=f"skill_{skill.value}")
                continue
            remaining = max(0, (skill_state.cooldown_end - now) // 1000) if skill_state else 0
            label = skill.display_name if remaining == 0 else f"{skill.display_name} ({remaining}s)"
            if st.button(label, disabled=remaining > 0, key=f"skill_{skill.value}"):
                apply_action(activate_skill, skill, now)
                st.rerun()
            if state.is_skill_active(skill):
                st.caption("Active")

    with st.expander("Passive skills"):
        for roll in preview_skills(state):
            mastery = state.player.skill_mastery.get(roll.skill.name)
            st.markdown(
                f"**{roll.skill.name}** - {roll.roll_chance:.0%} chance, "
                f"x{roll.damage_multiplier:.2f} damage"
                + (f" (mastery Lv.{mastery.level})" if mastery else "")
            )


def render_job_change():
    player = get_game_session().state.player
    next_job = player.job.next_job()
    if next_job is None:
        return
    ready = player.job_level >= next_job.unlock_level
    label = f"⬆ Promote to {next_job.display_name}"
    if not ready:
        label += f" (Job Lv.{next_job.unlock_level})"
    if st.button(label, disabled=not ready):
        apply_action(change_job, next_job)
        st.rerun()


def render_rare_drop():
    item = get_game_session().state.rare_drop_item
    if item is None:
        return
    color = RANK_COLORS[item.rank]
    st.markdown(f'<h3 style="color:{color}">🌟 Rare drop: {item.label}</h3>', unsafe_allow_html=True)
    if st.button("Nice!"):
        apply_action(dismiss_rare_drop)
        st.rerun()


def main():
    """Main entry point."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    get_game_session()
    sidebar()

    st.markdown('<div class="main-title">🗼 Tower Idle</div>', unsafe_allow_html=True)
    render_rare_drop()
    battle_view()
    st.divider()
    render_job_change()
    render_skills()


if __name__ == "__main__":
    main()
