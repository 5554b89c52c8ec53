"""Scoreboard domain services: match clock, state machine, registries,
broadcasting and background scheduling.

HTTP routes and socket handlers call into these modules, keeping transport
concerns separated from the match rules.
"""
