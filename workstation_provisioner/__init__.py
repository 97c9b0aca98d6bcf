"""Workstation provisioner (Python-first, step-driven).

Core design goals:
- Ordered step registry per OS family
- Idempotent steps guarded by declarative preconditions
- Best-effort runs; only prerequisite failures abort
- Architecture-aware downloads
- Centralized logging
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
