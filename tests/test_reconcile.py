import os
import tempfile
import unittest

from game import (
    GameService,
    NotFoundError,
    OptimisticSession,
    PendingAction,
    Phase,
    ValidationError,
    group_selected,
    init_game,
    make_move,
    replay,
)


def _raise(error):
    def remote():
        raise error
    return remote


class TestReplay(unittest.TestCase):
    def test_given_actions_when_replayed_then_applied_in_order(self):
        g0 = init_game(3)
        actions = [
            PendingAction(1, "a", lambda g: make_move(g, (0, 0, 0))),
            PendingAction(2, "b", lambda g: make_move(g, (0, 0, 1))),
        ]
        out = replay(g0, actions)
        self.assertEqual(out, make_move(make_move(g0, (0, 0, 0)), (0, 0, 1)))
        self.assertIsNone(g0.get_cell((0, 0, 0)))

    def test_given_action_invalid_on_new_base_when_replayed_then_skipped(self):
        g0 = init_game(3, phase=Phase.SCORE, current_turn=1)
        actions = [PendingAction(1, "bad group", lambda g: group_selected(g, [(0, 0, 0)]))]
        self.assertIs(replay(g0, actions), g0)


class TestOptimisticSession(unittest.TestCase):
    def test_given_issued_action_when_rejected_then_visible_equals_confirmed(self):
        g0 = init_game(3)
        messages = []
        session = OptimisticSession(g0, on_error=messages.append)
        ticket = session.issue("move", lambda g: make_move(g, (0, 0, 0)))
        self.assertEqual(session.visible.get_cell((0, 0, 0)), 1)
        self.assertTrue(session.is_pending)

        session.reject(ticket, ValidationError("nope", reason="test"))
        self.assertEqual(session.visible, g0)
        self.assertFalse(session.is_pending)
        self.assertEqual(messages, ["nope"])
        self.assertEqual(session.errors, ["nope"])

    def test_given_two_actions_when_confirmed_in_order_then_equals_serial_application(self):
        g0 = init_game(3)
        a = lambda g: make_move(g, (0, 0, 0))  # noqa: E731
        b = lambda g: make_move(g, (0, 1, 0))  # noqa: E731
        session = OptimisticSession(g0)
        ta = session.issue("a", a)
        tb = session.issue("b", b)
        self.assertEqual(session.visible, b(a(g0)))

        server_a = a(g0)
        server_ab = b(server_a)
        after_a = session.confirm(ta, server_a)
        self.assertEqual(session.confirmed, server_a)
        self.assertEqual(after_a, b(server_a))
        self.assertEqual([p.ticket for p in session.pending], [tb])

        session.confirm(tb, server_ab)
        self.assertEqual(session.visible, b(a(g0)))
        self.assertFalse(session.is_pending)

    def test_given_first_of_two_rejected_then_second_replayed_on_confirmed(self):
        g0 = init_game(3)
        b = lambda g: make_move(g, (0, 1, 0))  # noqa: E731
        session = OptimisticSession(g0)
        ta = session.issue("a", lambda g: make_move(g, (0, 0, 0)))
        session.issue("b", b)
        visible = session.reject(ta, RuntimeError("connection reset"))
        self.assertEqual(visible, b(g0))
        self.assertEqual(session.errors, ["connection reset"])

    def test_given_invalid_prediction_when_issuing_then_error_raised_and_nothing_queued(self):
        g0 = init_game(3, phase=Phase.SCORE, current_turn=1)
        session = OptimisticSession(g0)
        with self.assertRaises(ValidationError):
            session.issue("group", lambda g: group_selected(g, [(0, 0, 0)]))
        self.assertFalse(session.is_pending)
        self.assertIs(session.visible, g0)

    def test_given_unknown_ticket_when_confirming_then_value_error(self):
        session = OptimisticSession(init_game(2))
        with self.assertRaises(ValueError):
            session.confirm(42, init_game(2))

    def test_given_broadcast_when_received_then_pending_replayed_on_top(self):
        g0 = init_game(3)
        session = OptimisticSession(g0)
        session.issue("mine", lambda g: make_move(g, (0, 1, 3)))
        other = make_move(g0, (0, 0, 0))
        visible = session.receive(other)
        self.assertEqual(session.confirmed, other)
        self.assertEqual(visible, make_move(other, (0, 1, 3)))


class TestSessionAgainstService(unittest.TestCase):
    def setUp(self):
        self._td = tempfile.TemporaryDirectory()
        self.service = GameService(os.path.join(self._td.name, "games.db"))
        self.game = self.service.create_game(3)

    def tearDown(self):
        self._td.cleanup()

    def test_given_remote_accepts_when_running_then_confirmed_matches_server(self):
        session = OptimisticSession(self.game)
        gid = self.game.id
        visible = session.run(
            "move",
            lambda g: make_move(g, (0, 0, 2)),
            lambda: self.service.make_move(gid, (0, 0, 2)),
        )
        self.assertEqual(visible, self.service.get_game(gid))
        self.assertEqual(visible.get_cell((0, 0, 2)), 1)
        self.assertFalse(session.is_pending)

    def test_given_remote_fails_when_running_then_rolled_back(self):
        session = OptimisticSession(self.game)
        visible = session.run(
            "move",
            lambda g: make_move(g, (0, 0, 2)),
            lambda: self.service.make_move(9999, (0, 0, 2)),
        )
        self.assertEqual(visible, self.game)
        self.assertEqual(session.errors, ["game not found"])

    def test_given_remote_raising_when_running_then_any_error_rolls_back(self):
        session = OptimisticSession(self.game)
        visible = session.run("move", lambda g: make_move(g, (0, 0, 2)), _raise(NotFoundError("gone")))
        self.assertEqual(visible, self.game)
        visible = session.run("move", lambda g: make_move(g, (0, 0, 2)), _raise(OSError()))
        self.assertEqual(visible, self.game)
        self.assertEqual(session.errors, ["gone", "Action failed"])

    def test_given_room_subscription_when_other_player_moves_then_session_receives(self):
        gid = self.game.id
        session = OptimisticSession(self.game)
        unsubscribe = self.service.hub.subscribe(gid, session.receive)
        try:
            self.service.make_move(gid, (0, 1, 1))
            self.assertEqual(session.confirmed.get_cell((0, 1, 1)), 1)
            self.assertEqual(session.visible, self.service.get_game(gid))
        finally:
            unsubscribe()


if __name__ == "__main__":
    unittest.main(verbosity=2)
