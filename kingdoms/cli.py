"""
Kingdoms CLI - Command-line interface for the engine.

Usage:
    kingdoms serve [--host H] [--port P]       Run the API server
    kingdoms deck [--seed S]                   Print a shuffled deck
    kingdoms simulate [--players N] [--seed S] [--policy NAME]
                                               Play a full bot game
"""

import argparse
import sys

from .config import Config, configure_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Kingdoms - Multiplayer board game engine",
        prog="kingdoms",
    )
    parser.add_argument("--log-level", default=None, help="Override KINGDOMS_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default=Config.HOST, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=Config.PORT, help="Bind port")

    # Deck command
    deck_parser = subparsers.add_parser("deck", help="Print a shuffled tile deck")
    deck_parser.add_argument("--seed", type=int, default=None, help="Shuffle seed")

    # Simulate command
    from .bots import POLICIES
    simulate_parser = subparsers.add_parser("simulate", help="Play a full game with bots")
    simulate_parser.add_argument("--players", type=int, default=2, choices=[2, 3, 4], help="Number of bots")
    simulate_parser.add_argument("--seed", type=int, default=0, help="Seed for deck and bots")
    simulate_parser.add_argument("--policy", default="random", choices=sorted(POLICIES), help="Bot policy")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "deck":
        cmd_deck(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run("kingdoms.api.app:app", host=args.host, port=args.port, log_level=Config.LOG_LEVEL.lower())


def cmd_deck(args):
    """Print a shuffled deck, top of the deck last."""
    from .engine_core.setup import create_tile_deck
    from .engine_core.sources import Sources, default_sources

    sources = Sources.seeded(args.seed) if args.seed is not None else default_sources()
    deck = create_tile_deck(sources)
    for i, tile in enumerate(deck, start=1):
        print(f"{i:2d}. {tile.describe()}")


def cmd_simulate(args):
    """Play a full bot game and print epoch scores and standings."""
    from .bots import POLICIES, FirstLegalPolicy
    from .engine_core.sources import Sources
    from .session import GameLoop, LoopState

    policy_cls = POLICIES[args.policy]
    policies = []
    for i in range(args.players):
        if policy_cls is FirstLegalPolicy:
            policies.append(policy_cls())
        else:
            policies.append(policy_cls(args.seed + i))

    names = [f"Bot {i + 1}" for i in range(args.players)]
    loop = GameLoop.for_players(names, policies, Sources.seeded(args.seed))
    report = loop.run()

    players = {p.id: p for p in report.final_state.players}
    for epoch in report.epochs:
        print(f"Epoch {epoch.epoch}")
        for score in epoch.scores:
            player = players[score.player_id]
            print(
                f"  {player.name:<6} rows {score.row_scores} cols {score.col_scores}"
                f" = {score.total_score:+d} (gold {epoch.gold_after[score.player_id]})"
            )

    if report.loop_state != LoopState.GAME_OVER:
        print(f"Game stalled in epoch {report.final_state.epoch} after {report.actions_taken} actions")
        sys.exit(1)

    print(f"\nFinal standings after {report.actions_taken} actions:")
    for standing in report.standings:
        print(f"  {standing.rank}. {standing.name} ({standing.color}) {standing.gold} gold")


if __name__ == "__main__":
    main()
