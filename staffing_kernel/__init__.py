"""
Staffing Kernel

The stateful core of the staffing ledger:
- Pay-period boundary math
- Time ledger (clock-in/out, breaks) with one active entry per worker
- Pay stub approval/release lifecycle with frozen snapshots
- Ledger store protocol with in-memory and SQLAlchemy implementations
"""

__version__ = "0.1.0"
