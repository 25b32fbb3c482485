"""Aux Rounds — round lifecycle engine for the Give Me The Aux song game.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
