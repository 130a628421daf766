"""
Last-Write-Wins Merge

Reconciles a local and a remote snapshot by expense ID:
1. Every local record is kept as a starting point.
2. A remote record with an unknown ID is added.
3. A remote record with a known ID replaces the local one only if its
   `updated_at` is strictly later. Exact ties keep the local record.

`sync_status` is not consulted. Output order is insertion order (local
first, then remote-only records) but callers must not rely on it; use
the query functions for a defined order.
"""

from collections.abc import Iterable

from myexpenses.models.expense import Expense


def merge_expenses(local: Iterable[Expense], remote: Iterable[Expense]) -> list[Expense]:
    merged: dict[str, Expense] = {}
    for expense in local:
        merged[expense.id] = expense

    for candidate in remote:
        current = merged.get(candidate.id)
        if current is None or candidate.updated_at > current.updated_at:
            merged[candidate.id] = candidate

    return list(merged.values())
