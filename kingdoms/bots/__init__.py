"""
Bots module - Automated players.

Provides:
- BotPolicy: Interface for bot decision-making
- RandomPolicy / FirstLegalPolicy: baselines
- GreedyPolicy: one-ply score-lead maximiser
"""

from .policy import BotPolicy, BotDecision, RandomPolicy, FirstLegalPolicy, GreedyPolicy, POLICIES

__all__ = [
    "BotPolicy",
    "BotDecision",
    "RandomPolicy",
    "FirstLegalPolicy",
    "GreedyPolicy",
    "POLICIES",
]
