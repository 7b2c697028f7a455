from __future__ import annotations

# Facade module that re-exports the Freecell core.
# Single-responsibility modules live under freecell_core/*.

from freecell_core.cards import Card, RANKS, SUITS, card_from_id, full_deck, rank_value  # noqa: F401
from freecell_core.state import (  # noqa: F401
    BoardState,
    COLUMN_COUNT,
    FOUNDATION_COUNT,
    FREE_CELL_COUNT,
    card_from_json,
    card_to_json,
    check_invariants,
    state_from_json,
    state_to_json,
)
from freecell_core.deal import create_auto_complete_fixture, create_deck, initialize_game  # noqa: F401
from freecell_core.rules import (  # noqa: F401
    can_move_sequence,
    check_win_condition,
    foundation_index_for,
    is_foundation_ready,
    is_valid_foundation_move,
    is_valid_tableau_move,
    max_movable_sequence_length,
)
from freecell_core.moves import (  # noqa: F401
    FoundationLoc,
    FreeCellLoc,
    Locator,
    TableauLoc,
    apply_move,
    legal_destinations,
    locator_from_json,
    locator_to_json,
)
from freecell_core.autocomplete import (  # noqa: F401
    AutoMove,
    auto_complete_plan,
    can_auto_complete,
    next_auto_complete_move,
)
from freecell_core.session import GameSession, Status  # noqa: F401
from freecell_core.ticker import ManualScheduler, StepTicker  # noqa: F401
from freecell_core.db import db_recent_sessions, db_record_session, db_user_stats  # noqa: F401


def main() -> None:
    # CLI driver delegated to freecell_core.cli
    from freecell_core.cli import main as _main
    _main()


if __name__ == '__main__':
    main()
