"""
Marketplace Ledger

The ledger core of a two-sided marketplace where clients hire contractors:
- Atomic, value-conserving balance transfers with contention retry
- Job payment (exactly once per job)
- Capped client deposits
- Time-windowed earnings rankings over paid jobs
"""

__version__ = "0.1.0"
