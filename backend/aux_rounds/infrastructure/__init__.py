"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/
    - All external calls wrapped with timeout and error mapping

Design Decisions:
    - Thin httpx wrappers over Spotify and Expo: engine code never sees raw HTTP
"""
