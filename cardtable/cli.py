"""
Cardtable CLI - Command-line interface for the engine.

Usage:
    cardtable serve [--host H] [--port P]    Run the API server
    cardtable replay <replay_file>           Rebuild and summarize a replay
    cardtable demo                           Play a short scripted game
"""

import argparse
import logging
import sys

from .config import SETTINGS


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Cardtable - Authoritative Multiplayer Card Table",
        prog="cardtable",
    )
    parser.add_argument("--log-level", default=SETTINGS.log_level, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # Replay command
    replay_parser = subparsers.add_parser("replay", help="Rebuild and summarize a replay")
    replay_parser.add_argument("replay_file", help="Replay id or path to replay file")
    replay_parser.add_argument("--dir", help="Replay directory (defaults to CARDTABLE_REPLAY_DIR)")
    replay_parser.add_argument("--verbose", "-v", action="store_true", help="Print every action")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Play a short scripted game")
    demo_parser.add_argument("--seed", default="ROOM-DEMO", help="Room code and shuffle seed")

    args = parser.parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "replay":
        cmd_replay(args)
    elif args.command == "demo":
        cmd_demo(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the API server."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install uvicorn")
        sys.exit(1)

    uvicorn.run(
        "cardtable.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )


def cmd_replay(args):
    """Rebuild a replay from its recorded effects and compare to the stored final state."""
    from .engine_core.replay import replay_effects
    from .storage import ReplayStore

    store = ReplayStore(args.dir or SETTINGS.replay_dir)
    try:
        record = store.load(args.replay_file)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    rebuilt = replay_effects(record.initial_state, record.history)

    print(f"Room: {record.room_code}")
    print(f"Actions: {record.action_count}")
    if record.winner:
        print(f"Winner: {rebuilt.player_name(record.winner)}")
    for player in rebuilt.players:
        print(f"  {player.name}: {player.life} life")

    if args.verbose:
        print("\nHistory:")
        for index, entry in enumerate(record.history, start=1):
            effects = ", ".join(e.effect_type.value for e in entry.effects)
            print(f"  {index:3d}. {entry.action.player_id} {entry.action.type_name}: {effects}")

    if record.final_state is not None:
        # The final state also carries display-only notes that are not in history
        matches = [c.to_dict() for c in rebuilt.board] == [c.to_dict() for c in record.final_state.board]
        matches = matches and [p.life for p in rebuilt.players] == [p.life for p in record.final_state.players]
        print(f"\nRebuilt state matches final state: {'yes' if matches else 'NO'}")
        if not matches:
            sys.exit(1)


def cmd_demo(args):
    """Play a short scripted game and undo the last action."""
    from .engine_core.action import Action
    from .engine_core.state import Zone
    from .session import SessionManager
    from .table.setup import DeckList

    manager = SessionManager()
    room = manager.create_room(args.seed)
    p1 = room.join("demo-1", "Alice")
    p2 = room.join("demo-2", "Bob")

    deck = DeckList.from_dict({
        "name": "Demo",
        "commanders": [{"name": "Demo Commander"}],
        "mainboard": [{"name": "Forest", "quantity": 20}, {"name": "Grizzly Bears", "quantity": 10}],
    })
    room.load_deck(p1, deck)
    room.load_deck(p2, deck)

    session = room.session
    first_card = session.state.cards_in(Zone.HAND, p1)[0]

    script = [
        Action.draw(p1),
        Action.play_card(p1, first_card.card_id),
        Action.tap(p1, first_card.card_id),
        Action.modify_life(p2, -3, target_player_id=p1),
        Action.shuffle(p2),
        Action.tap(p1, first_card.card_id),
    ]
    for action in script:
        result = session.dispatch(action)
        line = f"{action.player_id} {action.type_name}: {result.status.value}"
        if result.error:
            line += f" ({result.error})"
        print(line)

    undone = session.undo()
    print(f"undo: {undone.status.value if undone else 'nothing to undo'}")

    print("\nLog:")
    for entry in session.state.log:
        print(f"  [{entry.label}] {entry.detail}")

    print("\nLife:")
    for player in session.state.players:
        print(f"  {player.name}: {player.life}")

    manager.end_room(room.code, winner=p1)


if __name__ == "__main__":
    main()
