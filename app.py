from __future__ import annotations

import atexit
import logging
import threading
import time
import uuid
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Tuple

from flask import Flask, jsonify, request

from freecell_core.autocomplete import can_auto_complete, next_auto_complete_move
from freecell_core.config import configure_logging, load_settings
from freecell_core.db import db_recent_sessions, db_record_session, db_user_stats
from freecell_core.moves import locator_from_json, locator_to_json
from freecell_core.rules import max_movable_sequence_length
from freecell_core.session import GameSession
from freecell_core.state import BoardState, state_from_json, state_to_json

logger = logging.getLogger(__name__)

SETTINGS = load_settings()
DEFAULT_DB = SETTINGS.db_path
AUTO_DELAY = SETTINGS.auto_delay_seconds
# None means real timer threads; tests swap in a ManualScheduler.
SCHEDULER = None

# Stats writes happen off the request path so a slow or broken DB never holds up play.
_stats_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='stats')

app = Flask(__name__)


def json_to_state(obj: Dict[str, Any]) -> BoardState:
    return state_from_json(obj)


class GameStore:
    """
    In-memory sessions keyed by game id, least recently used first.

    Holds at most max_games sessions; adding past the bound evicts the
    oldest. Sessions untouched for idle_seconds (0 disables) are evicted on
    the next add. Every session leaving the store is closed so its pending
    auto-complete step never fires.
    """

    def __init__(self, max_games: int = 1000, idle_seconds: float = 3600,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.max_games = max(1, max_games)
        self.idle_seconds = idle_seconds
        self._clock = clock
        self._games: 'OrderedDict[str, Tuple[GameSession, float]]' = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)

    def add(self, session: GameSession) -> str:
        gid = uuid.uuid4().hex
        with self._lock:
            now = self._clock()
            evicted = self._evict_locked(now, room_for=1)
            self._games[gid] = (session, now)
        for old in evicted:
            old.close()
        if evicted:
            logger.info('evicted %d idle or surplus game(s)', len(evicted))
        return gid

    def get(self, gid: str) -> GameSession:
        with self._lock:
            entry = self._games.get(gid)
            if entry is None:
                raise KeyError(gid)
            self._games[gid] = (entry[0], self._clock())
            self._games.move_to_end(gid)
        return entry[0]

    def discard(self, gid: str) -> bool:
        with self._lock:
            entry = self._games.pop(gid, None)
        if entry is None:
            return False
        entry[0].close()
        return True

    def clear(self) -> None:
        with self._lock:
            sessions = [s for s, _ in self._games.values()]
            self._games.clear()
        for s in sessions:
            s.close()

    def _evict_locked(self, now: float, room_for: int) -> List[GameSession]:
        evicted: List[GameSession] = []
        while self._games:
            gid, (session, touched) = next(iter(self._games.items()))
            idle = self.idle_seconds > 0 and now - touched >= self.idle_seconds
            full = len(self._games) + room_for > self.max_games
            if not (idle or full):
                break
            del self._games[gid]
            evicted.append(session)
        return evicted


STORE = GameStore(max_games=SETTINGS.max_games, idle_seconds=SETTINGS.game_idle_seconds)


def _current_user() -> Optional[str]:
    """Opaque identity from the fronting auth layer; absent means anonymous."""
    user = (request.headers.get('X-User-Id') or '').strip()
    return user or None


def _make_session(user_id: Optional[str]) -> GameSession:
    def record(moves: int, seconds: int, won: bool) -> None:
        db_record_session(DEFAULT_DB, user_id or '', moves, seconds, won)

    return GameSession(
        record_session=record,
        user_present=lambda: user_id is not None,
        auto_delay=AUTO_DELAY,
        scheduler=SCHEDULER,
        executor=_stats_executor if SCHEDULER is None else None,
    )


def _game_payload(gid: str, session: GameSession) -> Dict[str, Any]:
    out = session.snapshot()
    out['ok'] = True
    out['gameId'] = gid
    return out


def _lookup(body: Dict[str, Any]):
    gid = body.get('gameId')
    if not isinstance(gid, str):
        return None, (jsonify({'ok': False, 'error': 'gameId required'}), 400)
    try:
        return (gid, STORE.get(gid)), None
    except KeyError:
        return None, (jsonify({'ok': False, 'error': 'unknown game'}), 404)


# ---------- Game API ----------

@app.post('/api/new')
def api_new() -> Any:
    body = request.get_json(force=True, silent=True) or {}
    seed = body.get('seed', None)
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        return jsonify({'ok': False, 'error': 'seed must be an integer'}), 400
    gid = body.get('gameId')
    session: Optional[GameSession] = None
    if isinstance(gid, str):
        try:
            session = STORE.get(gid)
        except KeyError:
            session = None
    if session is None:
        session = _make_session(_current_user())
        gid = STORE.add(session)
    session.new_game(seed=seed)
    return jsonify(_game_payload(gid, session))


@app.post('/api/fixture')
def api_fixture() -> Any:
    body = request.get_json(force=True, silent=True) or {}
    gid = body.get('gameId')
    session: Optional[GameSession] = None
    if isinstance(gid, str):
        try:
            session = STORE.get(gid)
        except KeyError:
            session = None
    if session is None:
        session = _make_session(_current_user())
        gid = STORE.add(session)
    session.load_fixture()
    return jsonify(_game_payload(gid, session))


@app.get('/api/game/<gid>')
def api_game(gid: str) -> Any:
    try:
        session = STORE.get(gid)
    except KeyError:
        return jsonify({'ok': False, 'error': 'unknown game'}), 404
    return jsonify(_game_payload(gid, session))


@app.post('/api/end')
def api_end() -> Any:
    body = request.get_json(force=True, silent=True) or {}
    gid = body.get('gameId')
    if not isinstance(gid, str):
        return jsonify({'ok': False, 'error': 'gameId required'}), 400
    if not STORE.discard(gid):
        return jsonify({'ok': False, 'error': 'unknown game'}), 404
    return jsonify({'ok': True, 'gameId': gid})


@app.post('/api/move')
def api_move() -> Any:
    body = request.get_json(force=True, silent=True) or {}
    found, err = _lookup(body)
    if err:
        return err
    gid, session = found
    try:
        src = locator_from_json(body.get('from'))
        dst = locator_from_json(body.get('to'))
    except ValueError as e:
        return jsonify({'ok': False, 'error': f'bad locator: {e}'}), 400
    if not session.move(src, dst):
        payload = _game_payload(gid, session)
        payload['ok'] = False
        payload['error'] = 'Illegal move'
        return jsonify(payload), 400
    return jsonify(_game_payload(gid, session))


@app.post('/api/legal')
def api_legal() -> Any:
    body = request.get_json(force=True, silent=True) or {}
    found, err = _lookup(body)
    if err:
        return err
    _, session = found
    try:
        src = locator_from_json(body.get('from'))
    except ValueError as e:
        return jsonify({'ok': False, 'error': f'bad locator: {e}'}), 400
    dests = session.legal_destinations(src)
    return jsonify({'ok': True, 'destinations': [locator_to_json(d) for d in dests]})


@app.post('/api/autocomplete/step')
def api_autocomplete_step() -> Any:
    body = request.get_json(force=True, silent=True) or {}
    found, err = _lookup(body)
    if err:
        return err
    gid, session = found
    step = session.step_auto_complete()
    payload = _game_payload(gid, session)
    payload['applied'] = None if step is None else {
        'card': step.card.id,
        'from': locator_to_json(step.source),
        'to': locator_to_json(step.dest),
    }
    return jsonify(payload)


@app.post('/api/analyze')
def api_analyze() -> Any:
    body = request.get_json(force=True, silent=True) or {}
    s_in = body.get('state')
    if not isinstance(s_in, dict):
        return jsonify({'ok': False, 'error': 'state required'}), 400
    try:
        state = json_to_state(s_in)
    except ValueError as e:
        return jsonify({'ok': False, 'error': f'bad state: {e}'}), 400
    nxt = next_auto_complete_move(state)
    return jsonify({
        'ok': True,
        'isWon': state.is_won,
        'canAutoComplete': can_auto_complete(state),
        'next': None if nxt is None else {
            'card': nxt.card.id,
            'from': locator_to_json(nxt.source),
            'to': locator_to_json(nxt.dest),
        },
        'maxMovable': max_movable_sequence_length(state),
        'state': state_to_json(state),
    })


# ---------- Statistics API ----------

@app.get('/api/stats')
def api_stats() -> Any:
    user = _current_user()
    if user is None:
        return jsonify({'ok': False, 'error': 'Unauthorized'}), 401
    try:
        stats = db_user_stats(DEFAULT_DB, user)
    except Exception as e:
        logger.exception('failed to read stats')
        return jsonify({'ok': False, 'error': str(e)}), 500
    stats['ok'] = True
    return jsonify(stats)


@app.post('/api/stats')
def api_stats_record() -> Any:
    user = _current_user()
    if user is None:
        return jsonify({'ok': False, 'error': 'Unauthorized'}), 401
    body = request.get_json(force=True, silent=True) or {}
    try:
        db_record_session(DEFAULT_DB, user, body.get('moves'), body.get('timeSeconds'), body.get('won'))
    except ValueError as e:
        return jsonify({'ok': False, 'error': f'Invalid input: {e}'}), 400
    except Exception as e:
        logger.exception('failed to record session')
        return jsonify({'ok': False, 'error': str(e)}), 500
    return jsonify({'ok': True})


@app.get('/api/stats/recent')
def api_stats_recent() -> Any:
    user = _current_user()
    if user is None:
        return jsonify({'ok': False, 'error': 'Unauthorized'}), 401
    limit = request.args.get('limit', 5, type=int)
    try:
        sessions = db_recent_sessions(DEFAULT_DB, user, limit=limit)
    except Exception as e:
        logger.exception('failed to read recent sessions')
        return jsonify({'ok': False, 'error': str(e)}), 500
    return jsonify({'ok': True, 'sessions': sessions})


def _shutdown() -> None:
    STORE.clear()
    _stats_executor.shutdown(wait=True)


atexit.register(_shutdown)


# Entrypoint for "python app.py"
if __name__ == '__main__':
    configure_logging(SETTINGS)
    app.run(host='0.0.0.0', port=SETTINGS.port, debug=SETTINGS.debug)
