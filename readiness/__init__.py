"""Release readiness decision engine.

Turns evidence gathered from ArgoCD, Jenkins, GitHub, Confluence and a
change-management export into one RED/YELLOW/GREEN gate decision.
"""

__version__ = "0.4.0"
