#!/usr/bin/env python3
"""
  Terminal front-end for the toroidal universe.

  Draws the grid with half-block characters (two grid rows per terminal
  row) and forwards key presses and mouse clicks into the engine. The loop
  runs a fixed number of ticks per run and then pauses itself.

  Controls:
    q         quit               SPACE     play / pause
    r         reset random       c         reset all dead
    +/-       ticks per run      p         cycle stamp pattern
    w/W       width -/+          e/E       height -/+
    click     toggle top cell    shift+click toggle bottom cell
    ctrl+click  stamp pattern (add shift for the bottom cell)

  Stats are logged to universe_stats.csv beside this script.
"""

from __future__ import annotations

import argparse
import curses
import time
from dataclasses import dataclass
from pathlib import Path
from typing import IO, ClassVar

import numpy as np

from universe import (
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    PATTERN_NAMES,
    SeedPolicy,
    STORAGE_KINDS,
    Universe,
)

# ── Half-block characters ───────────────────────────────────────────────
UPPER_HALF = "\u2580"  # ▀  top cell alive
LOWER_HALF = "\u2584"  # ▄  bottom cell alive
FULL_BLOCK = "\u2588"  # █  both alive

# ── Loop tuning ─────────────────────────────────────────────────────────
DEFAULT_TICKS_PER_RUN: int = 50
MAX_TICKS_PER_RUN: int = 1000
TICKS_STEP: int = 5
DEFAULT_DELAY_MS: float = 50.0
RESIZE_STEP: int = 8

LOG_PATH = Path(__file__).resolve().parent / "universe_stats.csv"


# ═══════════════════════════════════════════════════════════════════════
#  Stats logger
# ═══════════════════════════════════════════════════════════════════════

class StatsLogger:
    """Writes engine telemetry to CSV for post-hoc inspection."""

    HEADER: ClassVar[str] = "gen,time_s,population,width,height,ticks_per_run,event\n"

    def __init__(self, path: Path) -> None:
        self._path = path
        self._fh: IO[str] | None = None
        self._t0: float = time.monotonic()

    def open(self) -> None:
        try:
            self._fh = open(self._path, "w")
            self._fh.write(self.HEADER)
            self._fh.flush()
        except OSError:
            self._fh = None

    def log(
        self,
        gen: int,
        pop: int,
        width: int,
        height: int,
        ticks_per_run: int,
        event: str = "",
    ) -> None:
        if self._fh is None:
            return
        t = time.monotonic() - self._t0
        self._fh.write(f"{gen},{t:.1f},{pop},{width},{height},{ticks_per_run},{event}\n")
        # Flush on events or periodically
        if event or gen % 50 == 0:
            try:
                self._fh.flush()
            except OSError:
                pass

    def close(self) -> None:
        if self._fh is not None:
            try:
                self._fh.close()
            except OSError:
                pass
            self._fh = None


# ═══════════════════════════════════════════════════════════════════════
#  Controller (input → engine, play state)
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class Controller:
    """Play/pause state and user gestures, kept free of curses calls."""

    universe: Universe
    ticks_per_run: int = DEFAULT_TICKS_PER_RUN
    rng: np.random.Generator | None = None
    paused: bool = False
    current_ticks: int = 0
    pattern_idx: int = 0

    @property
    def pattern(self) -> str:
        return PATTERN_NAMES[self.pattern_idx]

    def play(self) -> None:
        self.paused = False

    def pause(self) -> None:
        self.current_ticks = 0
        self.paused = True

    def frame(self) -> str:
        """One animation frame. Returns an event name (empty if none)."""
        if self.paused:
            return ""
        if self.current_ticks >= self.ticks_per_run:
            self.pause()
            return "pause:run_complete"
        self.current_ticks += 1
        self.universe.tick()
        return ""

    def handle_key(self, key: int) -> str:
        u = self.universe
        if key == ord(" "):
            if self.paused:
                self.play()
                return "play"
            self.pause()
            return "pause"
        if key in (ord("r"), ord("R")):
            self.universe = Universe(
                u.width, u.height, seed=SeedPolicy.RANDOM,
                storage=u.storage_kind, rng=self.rng,
            )
            return "reset:random"
        if key in (ord("c"), ord("C")):
            self.universe = u.all_dead()
            return "reset:dead"
        if key in (ord("+"), ord("=")):
            self.ticks_per_run = min(MAX_TICKS_PER_RUN, self.ticks_per_run + TICKS_STEP)
            return ""
        if key in (ord("-"), ord("_")):
            self.ticks_per_run = max(1, self.ticks_per_run - TICKS_STEP)
            return ""
        if key in (ord("p"), ord("P")):
            self.pattern_idx = (self.pattern_idx + 1) % len(PATTERN_NAMES)
            return f"pattern:{self.pattern}"
        if key == ord("w"):
            u.set_width(max(0, u.width - RESIZE_STEP))
            return f"resize:width={u.width}"
        if key == ord("W"):
            u.set_width(u.width + RESIZE_STEP)
            return f"resize:width={u.width}"
        if key == ord("e"):
            u.set_height(max(0, u.height - RESIZE_STEP))
            return f"resize:height={u.height}"
        if key == ord("E"):
            u.set_height(u.height + RESIZE_STEP)
            return f"resize:height={u.height}"
        return ""

    def handle_click(
        self, term_y: int, term_x: int, ctrl: bool = False, lower: bool = False
    ) -> str:
        """Map a terminal click to a grid cell and toggle or stamp it.

        Each terminal row shows two grid rows; `lower` picks the bottom one.
        """
        u = self.universe
        if u.width == 0 or u.height == 0 or term_y < 0 or term_x < 0:
            return ""
        # half-block: each terminal row covers two grid rows
        row = min(term_y * 2 + (1 if lower else 0), u.height - 1)
        col = min(term_x, u.width - 1)
        if ctrl:
            u.stamp_pattern(row, col, self.pattern)
            return f"stamp:{self.pattern}@{row},{col}"
        u.toggle_cell(row, col)
        return f"toggle@{row},{col}"


def log_frame(
    logger: StatsLogger, ctl: Controller, events: list[str], prev_gen: int
) -> None:
    """One CSV row per event, plus a periodic row every 10 generations.

    The periodic row is only written when the frame actually advanced the
    generation counter.
    """
    u = ctl.universe
    events = [e for e in events if e]
    for event in events:
        logger.log(
            gen=u.generation,
            pop=u.population(),
            width=u.width,
            height=u.height,
            ticks_per_run=ctl.ticks_per_run,
            event=event,
        )
    if not events and u.generation != prev_gen and u.generation % 10 == 0:
        logger.log(
            gen=u.generation,
            pop=u.population(),
            width=u.width,
            height=u.height,
            ticks_per_run=ctl.ticks_per_run,
        )


# ═══════════════════════════════════════════════════════════════════════
#  Rendering
# ═══════════════════════════════════════════════════════════════════════

def draw(stdscr: curses.window, ctl: Controller) -> None:
    """Half-block rendering of the grid plus a status bar."""
    max_y, max_x = stdscr.getmaxyx()
    grid = ctl.universe.cell_array()
    g_rows, g_cols = grid.shape

    draw_rows = min((g_rows + 1) // 2, max_y - 1)
    draw_cols = min(g_cols, max_x)

    if draw_rows > 0 and draw_cols > 0:
        # Pad to an even row count so top/bottom slices line up
        padded = np.zeros((draw_rows * 2, draw_cols), dtype=np.uint8)
        src = grid[: draw_rows * 2, :draw_cols]
        padded[: src.shape[0]] = src
        top = padded[0::2].astype(bool)
        bot = padded[1::2].astype(bool)

        ys, xs = np.nonzero(top | bot)
        ta = top[ys, xs].tolist()
        ba = bot[ys, xs].tolist()

        _addstr = stdscr.addstr
        _BOLD = curses.A_BOLD
        for y, x, t, b in zip(ys.tolist(), xs.tolist(), ta, ba):
            if t and b:
                ch = FULL_BLOCK
            elif t:
                ch = UPPER_HALF
            else:
                ch = LOWER_HALF
            try:
                _addstr(y, x, ch, _BOLD)
            except curses.error:
                pass

    u = ctl.universe
    state = "paused" if ctl.paused else "playing"
    left = (
        f"  gen {u.generation:,}  pop {u.population():,}  "
        f"{u.width}x{u.height}  run {ctl.current_ticks}/{ctl.ticks_per_run}"
    )
    right = f"{state}  [{ctl.pattern}]  q spc r c +/- p w/W e/E  "
    status = (left + "  " + right)[: max(0, max_x - 1)]
    try:
        stdscr.addstr(max_y - 1, 0, status, curses.A_DIM)
    except curses.error:
        pass


# ═══════════════════════════════════════════════════════════════════════
#  Configuration
# ═══════════════════════════════════════════════════════════════════════

def add_universe_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--width", type=int, default=DEFAULT_WIDTH,
                        help=f"Grid width in cells (default: {DEFAULT_WIDTH})")
    parser.add_argument("--height", type=int, default=DEFAULT_HEIGHT,
                        help=f"Grid height in cells (default: {DEFAULT_HEIGHT})")
    parser.add_argument("--seed", choices=[p.value for p in SeedPolicy],
                        default=SeedPolicy.STRIPED.value,
                        help="Initial pattern (default: striped)")
    parser.add_argument("--storage", choices=sorted(STORAGE_KINDS), default="byte",
                        help="Cell storage layout (default: byte)")
    parser.add_argument("--rng-seed", type=int, default=None,
                        help="Seed for the random initial pattern")


def build_universe(args: argparse.Namespace) -> tuple[Universe, np.random.Generator]:
    rng = np.random.default_rng(args.rng_seed)
    universe = Universe(
        args.width, args.height, seed=args.seed, storage=args.storage, rng=rng,
    )
    return universe, rng


# ═══════════════════════════════════════════════════════════════════════
#  Main loop
# ═══════════════════════════════════════════════════════════════════════

def main(stdscr: curses.window, args: argparse.Namespace) -> None:
    curses.curs_set(0)
    stdscr.nodelay(True)
    stdscr.timeout(0)
    curses.mousemask(curses.ALL_MOUSE_EVENTS)

    universe, rng = build_universe(args)
    ctl = Controller(universe, ticks_per_run=args.ticks, rng=rng)

    logger = StatsLogger(LOG_PATH)
    logger.open()

    try:
        while True:
            # ── Input ──────────────────────────────────────────────
            try:
                key = stdscr.getch()
            except curses.error:
                key = -1

            user_event = ""
            if key in (ord("q"), ord("Q")):
                break
            elif key == curses.KEY_MOUSE:
                try:
                    _, mx, my, _, bstate = curses.getmouse()
                    user_event = ctl.handle_click(
                        my, mx,
                        ctrl=bool(bstate & curses.BUTTON_CTRL),
                        lower=bool(bstate & curses.BUTTON_SHIFT),
                    )
                except curses.error:
                    pass
            elif key != -1:
                user_event = ctl.handle_key(key)

            # ── Simulate ───────────────────────────────────────────
            prev_gen = ctl.universe.generation
            frame_event = ctl.frame()

            # ── Log ────────────────────────────────────────────────
            log_frame(logger, ctl, [user_event, frame_event], prev_gen)

            # ── Render ─────────────────────────────────────────────
            stdscr.erase()
            draw(stdscr, ctl)
            stdscr.refresh()

            time.sleep(args.delay / 1000.0)

    finally:
        logger.close()


def cli() -> None:
    parser = argparse.ArgumentParser(description="Toroidal Game of Life in the terminal")
    add_universe_arguments(parser)
    parser.add_argument("--ticks", type=int, default=DEFAULT_TICKS_PER_RUN,
                        help=f"Ticks per run before auto-pause (default: {DEFAULT_TICKS_PER_RUN})")
    parser.add_argument("--delay", type=float, default=DEFAULT_DELAY_MS,
                        help=f"Frame delay in ms (default: {DEFAULT_DELAY_MS:.0f})")
    args = parser.parse_args()

    try:
        curses.wrapper(main, args)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    cli()
