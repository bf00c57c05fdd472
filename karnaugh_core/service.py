"""
Authoritative game service.

Owns the confirmed GameModel for every game id through the SQLite store,
serializes mutations per game id, and fans confirmed states out to the
listeners of that game's room only.
"""
from __future__ import annotations

import logging
import random
import threading
from typing import Callable, Dict, List, Optional, Sequence

from .board import Player
from .db import db_delete_game, db_get_game, db_list_games, db_save_game
from .dimensions import Position
from .errors import NotFoundError, ValidationError
from .moves import init_game, make_move, randomize_board
from .phases import GameType, Phase
from .scoring import group_selected
from .state import GameModel, get_winner

logger = logging.getLogger(__name__)

Listener = Callable[[GameModel], None]

MAX_PLAYERS = 2


def room_name(game_id: int) -> str:
    return f"game-{game_id}"


class RoomHub:
    """Room-scoped fan-out: a confirmed state only reaches listeners of its own game id."""

    def __init__(self) -> None:
        self._rooms: Dict[str, List[Listener]] = {}
        self._lock = threading.Lock()

    def subscribe(self, game_id: int, listener: Listener) -> Callable[[], None]:
        """Adds a listener to a game's room and returns a function that removes it."""
        name = room_name(game_id)
        with self._lock:
            self._rooms.setdefault(name, []).append(listener)

        def unsubscribe() -> None:
            with self._lock:
                members = self._rooms.get(name, [])
                if listener in members:
                    members.remove(listener)
                if not members:
                    self._rooms.pop(name, None)

        return unsubscribe

    def listeners(self, game_id: int) -> List[Listener]:
        with self._lock:
            return list(self._rooms.get(room_name(game_id), []))

    def broadcast(self, game: GameModel) -> None:
        if game.id is None:
            return
        for listener in self.listeners(game.id):
            listener(game)


class GameService:
    def __init__(self, db_path: str, hub: Optional[RoomHub] = None, rng: Optional[random.Random] = None):
        self.db_path = db_path
        self.hub = hub or RoomHub()
        self.rng = rng
        self._locks: Dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, game_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(game_id)
            if lock is None:
                lock = self._locks[game_id] = threading.Lock()
            return lock

    def _drop_lock(self, game_id: int) -> None:
        with self._locks_guard:
            self._locks.pop(game_id, None)

    def _mutate(self, game_id: int, action: str, update: Callable[[GameModel], GameModel]) -> GameModel:
        """Load, apply, save and broadcast while holding the game's lock.

        Listeners run under that lock and must not call back into the service
        for the same game.
        """
        with self._lock_for(game_id):
            try:
                game = db_get_game(self.db_path, game_id)
            except NotFoundError:
                self._drop_lock(game_id)
                raise
            updated = update(game)
            if updated is not game:
                updated = db_save_game(self.db_path, updated)
                logger.info("game %d: %s -> phase=%s turn=%d moves=%d",
                            game_id, action, updated.phase.value, updated.current_turn, updated.move_counter)
            else:
                logger.debug("game %d: %s had no effect", game_id, action)
            # Listeners receive confirmations in commit order
            self.hub.broadcast(updated)
        return updated

    # ---- queries ----

    def get_game(self, game_id: int) -> GameModel:
        return db_get_game(self.db_path, game_id)

    def list_games(self) -> List[GameModel]:
        return db_list_games(self.db_path)

    def players(self, game_id: int) -> List[str]:
        return list(self.get_game(game_id).players)

    def winner(self, game_id: int) -> Optional[Player]:
        return get_winner(self.get_game(game_id))

    # ---- mutations ----

    def create_game(
        self,
        num_vars: int,
        players: Sequence[str] = (),
        phase: Phase = Phase.PLACE,
        current_turn: Player = 1,
        game_type: GameType = GameType.LOCAL,
    ) -> GameModel:
        game = init_game(num_vars, players=players, phase=phase, current_turn=current_turn, game_type=game_type)
        saved = db_save_game(self.db_path, game)
        logger.info("game %d created: %d vars, %s", saved.id, num_vars, saved.game_type.value)
        return saved

    def make_move(self, game_id: int, pos: Position) -> GameModel:
        return self._mutate(game_id, f"move {pos}", lambda g: make_move(g, pos))

    def randomize(self, game_id: int) -> GameModel:
        return self._mutate(game_id, "randomize", lambda g: randomize_board(g, self.rng))

    def group(self, game_id: int, selected: Sequence[Position]) -> GameModel:
        try:
            return self._mutate(game_id, f"group of {len(selected)}", lambda g: group_selected(g, selected))
        except ValidationError as e:
            logger.warning("game %d: rejected grouping: %s", game_id, e.message)
            raise

    def join(self, game_id: int, player_name: str) -> GameModel:
        """Adds a second player to a game."""
        name = (player_name or "").strip()
        if not name:
            raise ValidationError("you must send a player name", reason="missing_player_name")

        def _join(game: GameModel) -> GameModel:
            if len(game.players) >= MAX_PLAYERS:
                raise ValidationError("game is full", reason="game_full")
            if name in game.players:
                raise ValidationError("player name already in use", reason="name_in_use")
            return game.with_players(game.players + (name,))

        updated = self._mutate(game_id, f"join {name}", _join)
        logger.info("game %d: player %s joined", game_id, name)
        return updated

    def delete_game(self, game_id: int) -> None:
        try:
            with self._lock_for(game_id):
                db_delete_game(self.db_path, game_id)
        finally:
            self._drop_lock(game_id)
        logger.info("game %d deleted", game_id)
