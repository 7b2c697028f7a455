from __future__ import annotations

import argparse
import getpass
from typing import Optional, Tuple

from .autocomplete import auto_complete_plan, can_auto_complete
from .config import configure_logging, load_settings
from .db import db_record_session, db_user_stats
from .moves import FoundationLoc, FreeCellLoc, Locator, TableauLoc
from .session import GameSession, Status
from .ticker import ManualScheduler

HELP = """Moves are "<from> <to>":
  cN     free cell N (0-3)
  fN     foundation N (0-3); a bare "f" as destination picks the right one
  tN     tableau column N (0-7), top card
  tN:K   tableau column N starting at card K (sequence move)
Commands: n = new game, h = help, q = quit"""


def parse_locator(token: str) -> Optional[Locator]:
    """Parses one move token, e.g. 'c0', 'f2', 't5', 't5:3'. Returns None if malformed."""
    token = token.strip().lower()
    if len(token) < 2 or token[0] not in 'cft':
        return None
    kind, rest = token[0], token[1:]
    start: Optional[int] = None
    if kind == 't' and ':' in rest:
        rest, _, start_s = rest.partition(':')
        if not start_s.isdigit():
            return None
        start = int(start_s)
    if not rest.isdigit():
        return None
    index = int(rest)
    if kind == 'c':
        return FreeCellLoc(index)
    if kind == 'f':
        return FoundationLoc(index)
    return TableauLoc(index, start)


def _resolve_move(session: GameSession, text: str) -> Optional[Tuple[Locator, Locator]]:
    parts = text.split()
    if len(parts) != 2:
        return None
    src = parse_locator(parts[0])
    if src is None:
        return None
    if parts[1].strip().lower() == 'f':
        for dest in session.legal_destinations(src):
            if isinstance(dest, FoundationLoc):
                return src, dest
        return src, FoundationLoc(0)  # the session rejects it
    dst = parse_locator(parts[1])
    if dst is None:
        return None
    return src, dst


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description='Freecell in the terminal')
    parser.add_argument('--seed', type=int, default=None, help='RNG seed for the deal')
    parser.add_argument('--fixture', action='store_true', help='Start from the near-won auto-complete layout')
    parser.add_argument('--auto', action='store_true', help='Only report whether the deal auto-completes, then exit')
    parser.add_argument('--db', default=None, help='SQLite DB file for session statistics')
    parser.add_argument('--user', default=None, help='Record statistics under this user id')
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(settings)
    db_path = args.db or settings.db_path
    recording = bool(args.user or args.db)
    user = args.user or (getpass.getuser() if recording else '')

    def record(moves: int, seconds: int, won: bool) -> None:
        db_record_session(db_path, user, moves, seconds, won)

    scheduler = ManualScheduler()
    session = GameSession(record_session=record if recording else None,
                          auto_delay=0.0, scheduler=scheduler)
    with session:
        if args.fixture:
            session.load_fixture()
        else:
            session.new_game(seed=args.seed)

        if args.auto:
            state = session.state
            assert state is not None
            print(state.pretty())
            if can_auto_complete(state):
                plan = auto_complete_plan(state)
                print(f'Auto-completes in {len(plan)} moves:', ' '.join(m.card.short() for m in plan))
            else:
                print('Not auto-completable.')
            return

        print(HELP)
        while True:
            if session.status is Status.AUTO_COMPLETING:
                step_no = 0
                while scheduler.run_next():
                    step_no += 1
                print(f'Auto-completed {step_no} cards.')
            state = session.state
            assert state is not None
            print()
            print(state.pretty())
            if session.status is Status.WON:
                print(f'You win in {state.moves} moves!')
                if recording:
                    stats = db_user_stats(db_path, user)
                    print(f"Played {stats['gamesPlayed']}, won {stats['gamesWon']} ({stats['winPercentage']}%)")
                return
            try:
                text = input('move> ').strip()
            except EOFError:
                return
            if text in ('q', 'quit'):
                return
            if text in ('h', 'help', '?'):
                print(HELP)
                continue
            if text == 'n':
                session.new_game()
                continue
            move = _resolve_move(session, text)
            if move is None:
                print('Could not parse. Try again.')
                continue
            if not session.move(*move):
                print('Illegal move. Try again.')


if __name__ == '__main__':
    main()
