"""
Arcana CLI - Command-line interface for the engine.

Usage:
    arcana selfplay [--seed N] [--p1 balanced] [--p2 aggressive]   Bot vs bot duel
    arcana cards                                                  List the card library
    arcana serve [--host H] [--port P]                            Run the HTTP API
"""

import argparse
import logging
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Arcana - Tarot duel engine",
        prog="arcana",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Self-play command
    selfplay_parser = subparsers.add_parser("selfplay", help="Run a bot vs bot duel")
    selfplay_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    selfplay_parser.add_argument("--p1", default="balanced", help="Personality of player 1")
    selfplay_parser.add_argument("--p2", default="balanced", help="Personality of player 2")
    selfplay_parser.add_argument("--max-turns", type=int, default=200, help="Turn limit")
    selfplay_parser.add_argument("--hp", type=int, default=40, help="Starting hp")
    selfplay_parser.add_argument("--quiet", action="store_true", help="Only print the result")

    # Card list command
    subparsers.add_parser("cards", help="List the card library")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "selfplay":
        return cmd_selfplay(args)
    elif args.command == "cards":
        return cmd_cards(args)
    elif args.command == "serve":
        return cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_selfplay(args):
    """Run a duel between two bots."""
    from .bots import PERSONALITIES
    from .games.tarot import MatchConfig
    from .session import GameLoop, SessionManager

    for personality in (args.p1, args.p2):
        if personality not in PERSONALITIES:
            print(f"Error: Unknown personality: {personality}")
            print(f"Choose from: {', '.join(sorted(PERSONALITIES))}")
            sys.exit(1)

    manager = SessionManager()
    session = manager.create_session(
        config=MatchConfig(starting_hp=args.hp, random_seed=args.seed),
        bot_personalities=(args.p1, args.p2),
    )
    loop = GameLoop(session)
    result = loop.run_to_completion(max_turns=args.max_turns)

    if not args.quiet:
        for line in result.log_lines:
            print(line)
        print()

    state = session.match_state
    print(f"Seed: {session.metadata['seed']}")
    print(f"Turns: {state.turn_number}")
    for player in state.players:
        print(f"  {player.name}: hp {player.hp}, atk {player.atk}")

    if result.is_draw:
        print("Result: draw")
    elif result.winner_id is not None:
        print(f"Result: {state.get_player(result.winner_id).name} wins")
    else:
        print("Result: unfinished")

    for error in result.errors:
        print(f"  - {error}")

    manager.end_session(session.session_id)
    return 0 if not result.errors else 1


def cmd_cards(args):
    """Print the card library."""
    from .games.tarot import TAROT_CARDS

    for card in sorted(TAROT_CARDS, key=lambda c: (c.suit.value, c.rank)):
        flags = []
        if card.is_treasure:
            flags.append("treasure")
        if card.instant_windows:
            flags.append("instant")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        print(f"{card.rank:>4}  {card.suit.value:<10} {card.name}{suffix}")
        if card.description:
            print(f"      {card.description}")
    return 0


def cmd_serve(args):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run("arcana.api.app:app", host=args.host, port=args.port, reload=args.reload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
