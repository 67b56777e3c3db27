"""Infrastructure adapters for the terrain bounded context.

Provides loading of DEMs from GeoTIFF files and a TerrainQuery that
samples heights and casts rays against a loaded grid.
"""

from .geotiff_adapter import GeoTiffTerrainAdapter
from .grid_terrain_query import GridTerrainQuery

__all__ = ["GeoTiffTerrainAdapter", "GridTerrainQuery"]
