"""
Freecell core Python package.

Pure game logic kept apart from the Flask app so it can be tested on its own.
Modules:
- cards.py: Card, suits and ranks
- state.py: BoardState and its JSON form
- deal.py: shuffled deck, opening layout, near-won fixture
- rules.py: move legality predicates
- moves.py: locators and the move executor
- autocomplete.py: auto-complete detection and stepping
- session.py, ticker.py: the live game driver and its cancellable step timer
- db.py: SQLite session statistics
- config.py, cli.py: settings and terminal driver
"""
