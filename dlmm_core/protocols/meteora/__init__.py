"""
Meteora DLMM pricing and accounting

Submodules are imported directly (``from dlmm_core.protocols.meteora.swap
import swap_quote``) so that ``types`` can depend on ``constants`` without
an import cycle.
"""
