"""Summit Viewpoint Domain Layer.

This package contains the core logic organized by bounded contexts:
- terrain: Geographic value objects, ellipsoid math, terrain sampling
- viewpoint: Landmark visibility ranking and the viewpoint state machine
"""

# Imports alphabetized per project style (isort)
from domain import terrain, viewpoint

__all__ = ["terrain", "viewpoint"]
