"""
Pool state, authority derivation and the token ledger capability.

Submodules are imported directly (``token_swap.state.pool`` etc.); ``core``
depends on ``state.canonical`` so this package keeps no eager imports.
"""
