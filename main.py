#!/usr/bin/env python3
"""Main entry point for Fantasy Zoo

Two modes:
  serve  - run the HTTP API (per-session zoos + leaderboard)
  run    - run a zoo headless, optionally with a simple auto-keeper
"""
import argparse
import logging
import sys
import time

from fantasy_zoo.core.config import default_config
from fantasy_zoo.core.models import EggType
from fantasy_zoo.core.state_manager import load_state, save_state
from fantasy_zoo.game.engine import ZooEngine, new_game_state, now_ms
from fantasy_zoo.game.scheduler import GameLoop
from fantasy_zoo.game.telemetry import Telemetry

logger = logging.getLogger("fantasy_zoo")


def keep_zoo(engine: ZooEngine):
    """Naive keeper: buy common eggs, feed the hungry, wash the dirty, treat the sick"""
    state = engine.state
    config = engine.config
    for animal in list(state.animals):
        if animal.is_sick:
            engine.send_to_clinic(animal.id)
        elif animal.hunger < config["NEGLECT_HUNGER_THRESHOLD"]:
            engine.feed(animal.id)
        elif animal.cleanliness < config["NEGLECT_CLEANLINESS_THRESHOLD"]:
            engine.clean(animal.id)

    price = config.egg_types[EggType.COMMON].price
    if not state.eggs and state.coins >= price * 2:
        engine.buy_egg(EggType.COMMON)

    if engine.can_prestige() and state.coins >= config["PRESTIGE_MIN_COINS"] * 5:
        engine.prestige()


def print_stats(engine: ZooEngine, step: int):
    state = engine.state
    logger.info(
        f"step {step}: coins={state.coins:.1f} income={state.income_per_step:.2f}/step "
        f"animals={len(state.animals)} eggs={len(state.eggs)} "
        f"prestige={state.prestige.count} game_over={state.game_over_reason or '-'}"
    )


def run_simulated(engine: ZooEngine, steps: int, stats_interval: int, auto: bool):
    """Step as fast as possible on a simulated clock"""
    tick = engine.config["TICK_MS"]
    now = engine.state.last_step_at or 0
    ran = 0
    for ran in range(1, steps + 1):
        now += tick
        if auto:
            keep_zoo(engine)
        engine.step(now)
        if stats_interval and ran % stats_interval == 0:
            print_stats(engine, ran)
        if engine.state.is_game_over:
            logger.info(f"Run ended after {ran} steps: {engine.state.game_over_reason}")
            break
    print_stats(engine, ran)


def run_realtime(engine: ZooEngine, seconds: float, auto: bool):
    """Drive the engine with the background game loop on the wall clock"""
    loop = GameLoop(engine)
    counter = {"steps": 0}

    def on_step(report):
        counter["steps"] += 1
        if report.errors:
            logger.warning(f"Step errors: {report.errors}")

    loop.add_listener(on_step)
    loop.start()
    deadline = time.monotonic() + seconds
    try:
        while time.monotonic() < deadline and not engine.state.is_game_over:
            if auto:
                with loop.exclusive():
                    keep_zoo(engine)
            time.sleep(engine.config["TICK_MS"] / 1000.0)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        loop.stop()
    print_stats(engine, counter["steps"])


def cmd_run(args) -> int:
    config = default_config()
    telemetry = Telemetry(enabled=bool(args.export_stats))

    state = load_state(args.load) if args.load else None
    if state is None:
        start = 0 if not args.realtime else now_ms()
        state = new_game_state(config, start, seed=args.seed)
        logger.info(f"Started a new zoo (seed {state.rng_seed})")
    else:
        logger.info(f"Loaded zoo from {args.load}")

    if args.realtime:
        clock = now_ms
    else:
        # Simulated time: actions happen at the last step
        def clock():
            return state.last_step_at or 0
    engine = ZooEngine(state=state, config=config, clock=clock, telemetry=telemetry)

    if args.realtime:
        engine.advance_to(now_ms())
        run_realtime(engine, args.seconds, args.auto)
    else:
        run_simulated(engine, args.steps, args.stats_interval, args.auto)

    if args.save:
        save_state(engine.state, args.save)
        logger.info(f"Saved zoo to {args.save}")
    if args.export_stats:
        telemetry.export(args.export_stats)
        logger.info(f"Telemetry written to {args.export_stats}")
    return 0


def cmd_serve(args) -> int:
    from fantasy_zoo.backend.main import run

    run(host=args.host, port=args.port)
    return 0


def main(argv=None) -> int:
    """Parse command-line arguments and run the selected mode"""
    parser = argparse.ArgumentParser(
        description="Fantasy Zoo idle game simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --port 8000
  python main.py run --steps 600 --auto --seed 42
  python main.py run --realtime --seconds 30 --save zoo.json
        """,
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default: $HOST or 0.0.0.0)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: $PORT or 8000)")
    serve.set_defaults(func=cmd_serve)

    run = sub.add_parser("run", help="Run a zoo headless")
    run.add_argument("--steps", type=int, default=600, help="Simulated steps to run (default: 600)")
    run.add_argument("--realtime", action="store_true", help="Tick on the wall clock instead")
    run.add_argument("--seconds", type=float, default=30.0, help="Real-time duration (default: 30)")
    run.add_argument("--seed", type=int, default=None, help="Random seed for a new zoo")
    run.add_argument("--auto", action="store_true", help="Let a simple keeper play")
    run.add_argument("--stats-interval", type=int, default=60, help="Log stats every N steps")
    run.add_argument("--load", type=str, default=None, help="Load a saved zoo")
    run.add_argument("--save", type=str, default=None, help="Save the zoo when done")
    run.add_argument("--export-stats", type=str, default=None, help="Write telemetry JSON here")
    run.set_defaults(func=cmd_run)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
