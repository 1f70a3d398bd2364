"""
Physics cases: diffusion closures, reaction sources and initial profiles.
"""

from .physics_case import PhysicsCase
from .factory import PhysicsCaseFactory
from .initial_conditions import InitialConditionLibrary

__all__ = ['PhysicsCase', 'PhysicsCaseFactory', 'InitialConditionLibrary']
