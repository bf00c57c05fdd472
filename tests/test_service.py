import os
import random
import tempfile
import threading
import time
import unittest

from game import (
    GameService,
    GameType,
    NotFoundError,
    OptimisticSession,
    Phase,
    RoomHub,
    ValidationError,
    room_name,
)


class TestGameService(unittest.TestCase):
    def setUp(self):
        self._td = tempfile.TemporaryDirectory()
        self.service = GameService(os.path.join(self._td.name, "games.db"), rng=random.Random(1))

    def tearDown(self):
        self._td.cleanup()

    def test_given_created_game_when_moving_then_state_persisted(self):
        game = self.service.create_game(2, players=["ann"])
        self.service.make_move(game.id, (0, 0, 1))
        loaded = self.service.get_game(game.id)
        self.assertEqual(loaded.get_cell((0, 0, 1)), 1)
        self.assertEqual(loaded.current_turn, 0)
        self.assertEqual(self.service.players(game.id), ["ann"])

    def test_given_game_when_randomized_then_score_phase_stored(self):
        game = self.service.create_game(4)
        updated = self.service.randomize(game.id)
        self.assertEqual(updated.phase, Phase.SCORE)
        self.assertEqual(self.service.get_game(game.id).board.count(None), 0)

    def test_given_invalid_grouping_when_grouping_then_error_and_state_unchanged(self):
        game = self.service.create_game(3)
        game = self.service.randomize(game.id)
        with self.assertRaises(ValidationError):
            self.service.group(game.id, [(0, 0, 0), (0, 1, 1)])
        self.assertEqual(self.service.get_game(game.id), game)

    def test_given_online_game_when_joining_then_players_added_until_full(self):
        game = self.service.create_game(3, players=["ann"], game_type=GameType.ONLINE)
        with self.assertRaises(ValidationError) as ctx:
            self.service.join(game.id, "ann")
        self.assertEqual(ctx.exception.reason, "name_in_use")
        joined = self.service.join(game.id, "bob")
        self.assertEqual(joined.players, ("ann", "bob"))
        with self.assertRaises(ValidationError) as ctx:
            self.service.join(game.id, "cid")
        self.assertEqual(ctx.exception.reason, "game_full")
        with self.assertRaises(ValidationError):
            self.service.join(game.id, "  ")

    def test_given_deleted_game_when_loading_then_not_found(self):
        game = self.service.create_game(3)
        self.service.delete_game(game.id)
        with self.assertRaises(NotFoundError):
            self.service.get_game(game.id)
        with self.assertRaises(NotFoundError):
            self.service.make_move(game.id, (0, 0, 0))

    def test_given_concurrent_moves_when_applied_then_serialized(self):
        game = self.service.create_game(4)
        cells = [(0, y, x) for y in range(4) for x in range(4)]
        threads = [threading.Thread(target=self.service.make_move, args=(game.id, c)) for c in cells]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        final = self.service.get_game(game.id)
        self.assertEqual(final.move_counter, 16)
        self.assertEqual(final.phase, Phase.SCORE)
        self.assertEqual(final.board.count(0), 8)
        self.assertEqual(final.board.count(1), 8)

    def test_given_two_rooms_when_broadcasting_then_only_own_room_notified(self):
        a = self.service.create_game(2)
        b = self.service.create_game(2)
        seen_a, seen_b = [], []
        self.service.hub.subscribe(a.id, seen_a.append)
        unsub_b = self.service.hub.subscribe(b.id, seen_b.append)
        self.service.make_move(a.id, (0, 0, 0))
        self.assertEqual(len(seen_a), 1)
        self.assertEqual(seen_b, [])
        unsub_b()
        self.service.make_move(b.id, (0, 0, 0))
        self.assertEqual(seen_b, [])

    def test_given_slow_first_broadcast_when_second_move_races_then_listeners_end_on_latest(self):
        hub = _SlowFirstMoveHub()
        service = GameService(os.path.join(self._td.name, "slow.db"), hub=hub)
        game = service.create_game(3)
        session = OptimisticSession(game)
        hub.subscribe(game.id, session.receive)

        first = threading.Thread(target=service.make_move, args=(game.id, (0, 0, 0)))
        first.start()
        self.assertTrue(hub.entered.wait(2))
        second = threading.Thread(target=service.make_move, args=(game.id, (0, 0, 1)))
        second.start()
        first.join()
        second.join()

        self.assertEqual(service.get_game(game.id).move_counter, 2)
        self.assertEqual([g.move_counter for g in hub.delivered], [1, 2])
        self.assertEqual(session.confirmed, service.get_game(game.id))

    def test_given_unknown_ids_when_mutating_then_no_locks_left_behind(self):
        for gid in (101, 102, 103, 104):
            with self.assertRaises(NotFoundError):
                self.service.randomize(gid)
            with self.assertRaises(NotFoundError):
                self.service.join(gid, "ann")
            with self.assertRaises(NotFoundError):
                self.service.make_move(gid, (0, 0, 0))
            with self.assertRaises(NotFoundError):
                self.service.delete_game(gid)
        self.assertEqual(self.service._locks, {})


class _SlowFirstMoveHub(RoomHub):
    """Delays the broadcast of the first move so a second move can race it."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.delivered = []

    def broadcast(self, game):
        if game.move_counter == 1:
            self.entered.set()
            time.sleep(0.3)
        self.delivered.append(game)
        super().broadcast(game)


class TestRoomHub(unittest.TestCase):
    def test_given_game_id_then_room_name_scoped(self):
        self.assertEqual(room_name(7), "game-7")

    def test_given_unsubscribed_listener_then_room_removed(self):
        hub = RoomHub()
        unsub = hub.subscribe(1, lambda g: None)
        self.assertEqual(len(hub.listeners(1)), 1)
        unsub()
        self.assertEqual(hub.listeners(1), [])


if __name__ == "__main__":
    unittest.main(verbosity=2)
