"""
MyExpenses - Core Package

Local-first expense tracking engine. Every change lands in local storage
first; a remote store, when configured, is kept eventually consistent in
the background.

DESIGN PRINCIPLES:
1. Local storage is the source of truth for the current device
2. Remote failures never block or fail a local mutation
3. Failed remote operations are kept, counted, and retried on request
4. Conflicts resolve by last write wins
5. Storage and remote backends are swappable
"""

__version__ = "1.0.0"
__author__ = "MyExpenses Team"
