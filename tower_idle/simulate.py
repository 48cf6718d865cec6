"""
Tower Idle - Headless Simulator
===============================
Run the engine without a UI and print where the run ends up.

Usage:
    python -m tower_idle.simulate --ticks 3600
    python -m tower_idle.simulate --save run.json --ticks 600 --write
"""

import logging
import random
from typing import Optional

from .core.numbers import format_number
from .game_loop import GameLoop, calculate_total_attack
from .save_data import load_game_file, save_game_file
from .settings import load_engine_config
from .state import GameState, new_game_state


def summarize(state: GameState) -> str:
    player = state.player
    enemy = state.enemy
    lines = [
        f"Floor:        {player.floor} (max {player.max_floor_reached})",
        f"Level:        {player.level} ({format_number(player.current_xp)}/{format_number(player.required_xp)} XP)",
        f"Job:          {player.job.display_name} Lv.{player.job_level}",
        f"Gold:         {format_number(player.gold)}",
        f"Stones:       {format_number(player.reincarnation_stones)}",
        f"Attack:       {format_number(calculate_total_attack(player, state.equipped, state.inventory))}",
        f"Inventory:    {len(state.inventory)} items",
    ]
    if enemy is not None:
        lines.append(f"Enemy:        {enemy.name} {format_number(enemy.current_hp)}/{format_number(enemy.max_hp)}")
    return "\n".join(lines)


def get_state_clock(state: GameState) -> int:
    """
    Epoch ms the state was last advanced to.

    Skill timers in a loaded save are epoch based, so a run continues from
    the newest log entry or skill activation instead of from 0.
    """
    times = [entry.timestamp for entry in state.logs]
    times.extend(skill.end_time - skill.duration
                 for skill in state.active_skills.values() if skill.is_active)
    return max(times, default=0)


def simulate(ticks: int, state: Optional[GameState] = None, seed: Optional[int] = None) -> GameState:
    """Run `ticks` ticks on a fresh or given state."""
    rng = random.Random(seed) if seed is not None else random
    loop = GameLoop(load_engine_config(), rng=rng)
    state = state or new_game_state()
    return loop.run(state, ticks, start=get_state_clock(state))


def main(argv=None):
    import argparse
    parser = argparse.ArgumentParser(description="Run Tower Idle without a UI")
    parser.add_argument("-t", "--ticks", type=int, default=600, help="Game seconds to simulate")
    parser.add_argument("-s", "--save", type=str, help="Save file to start from")
    parser.add_argument("-w", "--write", action="store_true", help="Write the result back to --save")
    parser.add_argument("--seed", type=int, help="Seed for a repeatable run")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print the last log entries")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    start_state = load_game_file(args.save) if args.save else None
    final = simulate(args.ticks, start_state, args.seed)
    print(summarize(final))
    if args.verbose:
        for entry in final.logs[-10:]:
            print(f"  [{entry.type.value}] {entry.message}")
    if args.write and args.save:
        if not save_game_file(args.save, final):
            print("Failed to write save")


if __name__ == "__main__":
    main()
