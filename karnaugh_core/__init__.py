"""
K-map game core Python package.

Rules engine for the Karnaugh-map grouping game plus its persistence and
service layers. Modules:
- dimensions.py: variable count -> GameInfo (axes, dimensions, size)
- board.py: Board, Position, random fill
- adjacency.py: toroidal neighbours and rectangle validation
- phases.py: Phase / GameType and the phase transitions
- scoring.py: ScoringState and grouping
- state.py: GameModel, get_winner
- moves.py: init_game, make_move, randomize_board
- records.py: flat record and JSON conversion
- reconcile.py: optimistic client-side reconciliation
- db.py, service.py: SQLite store and the authoritative game service
"""
