"""
Vehicle agents for the tank-combat simulation.

Enemy vehicles are driven by terrain-conditioned dice tables; the
Sherman autopilot plays the player vehicle in headless runs.
"""

from .base import AgentAction, AgentStep, AgentTable, AgentTurnReport, VehicleAgent
from .german import GermanTankAgent
from .sherman import ShermanAutopilot

__all__ = [
    "AgentAction",
    "AgentStep",
    "AgentTable",
    "AgentTurnReport",
    "VehicleAgent",
    "GermanTankAgent",
    "ShermanAutopilot",
]
