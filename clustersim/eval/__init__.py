"""
Invariant checks for cluster simulation runs.

Provides non-raising validators that return human-readable violation lists
for summaries and round-robin job assignment.
"""
