"""
Optimistic reconciliation between a client's predicted state and the
authority's confirmed state.

The visible state is always ``replay(confirmed, pending)``: the last confirmed
model with the not-yet-resolved actions re-applied in issue order. Nothing is
cloned or patched in place; confirmation swaps the base and replays, rejection
drops the action and replays.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from .errors import KMapError
from .state import GameModel

logger = logging.getLogger(__name__)

Action = Callable[[GameModel], GameModel]
Remote = Callable[[], GameModel]
ErrorReporter = Callable[[str], None]


@dataclass(frozen=True)
class PendingAction:
    ticket: int
    label: str
    apply: Action


def replay(confirmed: GameModel, actions: Iterable[PendingAction]) -> GameModel:
    """Applies ``actions`` in order on top of ``confirmed``.

    An action the engine rejects against the newer base is left out of the
    result; it stays queued until the authority resolves it.
    """
    state = confirmed
    for action in actions:
        try:
            state = action.apply(state)
        except KMapError as e:
            logger.debug("replay skipped %s (#%d): %s", action.label, action.ticket, e)
    return state


def _error_message(error: BaseException) -> str:
    if isinstance(error, KMapError):
        return error.message
    return str(error) or "Action failed"


class OptimisticSession:
    """Confirmed model plus an ordered queue of speculative actions."""

    def __init__(self, confirmed: GameModel, on_error: Optional[ErrorReporter] = None):
        self._confirmed = confirmed
        self._pending: List[PendingAction] = []
        self._visible = confirmed
        self._tickets = itertools.count(1)
        self._on_error = on_error
        self.errors: List[str] = []

    @property
    def confirmed(self) -> GameModel:
        return self._confirmed

    @property
    def pending(self) -> Tuple[PendingAction, ...]:
        return tuple(self._pending)

    @property
    def visible(self) -> GameModel:
        return self._visible

    @property
    def is_pending(self) -> bool:
        return bool(self._pending)

    def _refresh(self) -> None:
        self._visible = replay(self._confirmed, self._pending)

    def _take(self, ticket: int) -> PendingAction:
        for i, action in enumerate(self._pending):
            if action.ticket == ticket:
                return self._pending.pop(i)
        raise ValueError(f'no pending action with ticket {ticket}')

    def issue(self, label: str, apply: Action) -> int:
        """Predicts ``apply`` on the visible state and queues it.

        If the prediction itself raises (e.g. an invalid grouping) the error
        propagates and nothing is queued.
        """
        predicted = apply(self._visible)
        ticket = next(self._tickets)
        self._pending.append(PendingAction(ticket, label, apply))
        self._visible = predicted
        return ticket

    def confirm(self, ticket: int, authoritative: GameModel) -> GameModel:
        """The authority accepted ``ticket``: adopt its model and replay what is still pending."""
        self._take(ticket)
        self._confirmed = authoritative
        self._refresh()
        return self._visible

    def reject(self, ticket: int, error: BaseException) -> GameModel:
        """The authority refused ``ticket``: drop it, report, and fall back to confirmed + remaining."""
        action = self._take(ticket)
        message = _error_message(error)
        logger.warning("rolling back %s (#%d): %s", action.label, ticket, message)
        self.errors.append(message)
        if self._on_error is not None:
            self._on_error(message)
        self._refresh()
        return self._visible

    def receive(self, authoritative: GameModel) -> GameModel:
        """Adopts a confirmed state pushed by the authority (e.g. another player's move)."""
        self._confirmed = authoritative
        self._refresh()
        return self._visible

    def run(self, label: str, apply: Action, remote: Remote) -> GameModel:
        """Issue ``apply`` locally, then resolve it synchronously with ``remote``."""
        ticket = self.issue(label, apply)
        try:
            authoritative = remote()
        except Exception as e:  # any remote failure becomes a rollback
            return self.reject(ticket, e)
        return self.confirm(ticket, authoritative)
