"""
Scaling Chart Component

Plotly charts for how enemies and drops scale with floor depth: enemy HP,
gold and XP on a log axis, and the drop rank/plus odds across a tier.
"""

import math
from typing import List

import plotly.graph_objects as go

from tower_idle.core.constants import EquipmentRank
from tower_idle.core.numbers import format_number
from tower_idle.core.scaling import generate_enemy, is_boss_floor
from tower_idle.drops import get_drop_weights


def _log10(value: float) -> float:
    return math.log10(value) if value > 0 else 0.0


def create_enemy_scaling_chart(
    start_floor: int,
    end_floor: int,
    enemy_hp_down_level: int = 0,
    player_damage: int = 0,
    height: int = 420,
) -> go.Figure:
    """
    Enemy HP, gold and XP for a floor range.

    Values are plotted as log10 so tiers (x100 every 500 floors) stay
    readable. Boss floors get markers.

    Args:
        start_floor: First floor
        end_floor: Last floor (inclusive)
        enemy_hp_down_level: Enemy HP Down upgrade level
        player_damage: Current base damage, drawn as a reference line
    """
    floors = list(range(max(1, start_floor), max(start_floor, end_floor) + 1))
    enemies = [generate_enemy(f, enemy_hp_down_level) for f in floors]

    def hover(values: List[int], label: str) -> List[str]:
        return [f"<b>Floor {f}</b><br>{label}: {format_number(v)}" for f, v in zip(floors, values)]

    fig = go.Figure()
    series = [
        ("HP", [e.max_hp for e in enemies], "#ef5350"),
        ("Gold", [e.gold_reward for e in enemies], "#ffca28"),
        ("XP", [e.xp_reward for e in enemies], "#42a5f5"),
    ]
    for label, values, color in series:
        fig.add_trace(go.Scatter(
            x=floors,
            y=[_log10(v) for v in values],
            mode='lines',
            line=dict(color=color, width=2),
            name=label,
            hovertemplate='%{customdata}<extra></extra>',
            customdata=hover(values, label),
        ))

    boss_floors = [f for f in floors if is_boss_floor(f)]
    if boss_floors and len(boss_floors) <= 200:
        boss_hp = [enemies[f - floors[0]].max_hp for f in boss_floors]
        fig.add_trace(go.Scatter(
            x=boss_floors,
            y=[_log10(v) for v in boss_hp],
            mode='markers',
            marker=dict(color='#ef5350', size=6, symbol='diamond'),
            name='Boss HP',
            hovertemplate='%{customdata}<extra></extra>',
            customdata=[f"<b>Boss floor {f}</b><br>HP: {format_number(v)}" for f, v in zip(boss_floors, boss_hp)],
        ))

    if player_damage > 0:
        fig.add_hline(
            y=_log10(player_damage),
            line_dash="dash",
            line_color="#66bb6a",
            annotation_text=f"Your damage: {format_number(player_damage)}",
            annotation_position="top left",
        )

    fig.update_layout(
        height=height,
        margin=dict(l=20, r=20, t=40, b=20),
        xaxis_title="Floor",
        yaxis_title="log10(value)",
        hovermode='x unified',
        legend=dict(orientation='h', yanchor='bottom', y=1.02, xanchor='right', x=1),
        paper_bgcolor='rgba(0,0,0,0)',
        plot_bgcolor='rgba(0,0,0,0)',
    )
    return fig


def create_drop_odds_chart(tier_start: int = 1, height: int = 320) -> go.Figure:
    """C rank and +1/+2 odds across one 500-floor tier."""
    floors = list(range(tier_start, tier_start + 500, 10)) + [tier_start + 499]
    fig = go.Figure()

    rank_c = []
    plus_1 = []
    plus_2 = []
    for f in floors:
        weights = get_drop_weights(f)
        rank_total = sum(weights['rank'].values())
        plus_total = sum(weights['plus'].values())
        rank_c.append(100 * weights['rank'][EquipmentRank.C] / rank_total)
        plus_1.append(100 * weights['plus'][1] / plus_total)
        plus_2.append(100 * weights['plus'][2] / plus_total)

    fig.add_trace(go.Scatter(x=floors, y=rank_c, mode='lines', name='C rank %',
                             line=dict(color='#66bb6a', width=2)))
    fig.add_trace(go.Scatter(x=floors, y=plus_1, mode='lines', name='+1 %',
                             line=dict(color='#42a5f5', width=2)))
    fig.add_trace(go.Scatter(x=floors, y=plus_2, mode='lines', name='+2 %',
                             line=dict(color='#ab47bc', width=2)))
    fig.update_layout(
        height=height,
        margin=dict(l=20, r=20, t=40, b=20),
        xaxis_title="Floor",
        yaxis_title="Chance (%)",
        hovermode='x unified',
        paper_bgcolor='rgba(0,0,0,0)',
        plot_bgcolor='rgba(0,0,0,0)',
    )
    return fig
