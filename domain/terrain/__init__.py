"""Terrain Bounded Context.

Responsible for physical geography and spatial calculations:
- Value Objects: GeographicPoint, CartesianPoint, BoundingBox, TerrainGrid
- Ports: TerrainQuery, Geodesy, TerrainRepository
- Services: Wgs84Geodesy, bilinear_interpolate
"""
