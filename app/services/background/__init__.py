"""
Background Services Module

Periodic jobs that run outside the request cycle.

Usage:
    from app.services.background import run_settlement_sweep

    report = run_settlement_sweep(SessionLocal, processor)
"""

from app.services.background.settlement_sweep import SweepReport, run_settlement_sweep

__all__ = [
    "SweepReport",
    "run_settlement_sweep",
]
