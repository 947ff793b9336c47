"""Wellness challenge tracker.

Provides functionality for:
- Recording daily progress against recurring challenges
- Deriving completion, days remaining and streak metrics
- Governing challenge lifecycle (active, completed, abandoned)
"""

__version__ = "0.1.0"
