"""Viewpoint Bounded Context.

Responsible for finding the closest visible landmark from a clicked point:
- Value Objects: Landmark, ObserverResolution, CameraSnapshot
- Services: VisibilityResolver
- State machine: transition table over Exploring/CheckingViewpoint/Viewing
"""
