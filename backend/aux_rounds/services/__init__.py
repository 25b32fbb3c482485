"""Services Layer — phase advancement, side effects, engine tick, and scheduler.

Invariants:
    - Phase advancement owns exactly one transaction per tick
    - Side effects (playlists, notifications) run after that transaction commits

Design Decisions:
    - One service file per collaborator for locality (no god objects)
"""
