"""
Swing Core

Asynchronous golf swing analysis pipeline:
pose detection -> trajectories -> swing phases -> metrics -> grade.
"""

__version__ = "1.0.0"
