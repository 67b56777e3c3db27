"""Elevation source for the viewpoint engine: GeoTIFF DEM -> TerrainGrid.

The grid returned here backs GridTerrainQuery, so it is always single
band float32 in EPSG:4326 with NaN for missing elevations. Rasters in any
other CRS are warped with bilinear resampling on load.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
import rasterio
from affine import Affine
from numpy.typing import NDArray
from rasterio.crs import CRS
from rasterio.enums import Resampling
from rasterio.errors import RasterioError
from rasterio.transform import array_bounds
from rasterio.warp import calculate_default_transform, reproject

from domain.terrain.errors import (
    AllNoDataError,
    InsufficientMemoryError,
    InvalidBoundsError,
    InvalidGeotransformError,
    InvalidRasterError,
    MissingCRSError,
)
from domain.terrain.value_objects import BoundingBox, TerrainGrid

logger = logging.getLogger(__name__)

WGS84 = CRS.from_epsg(4326)
DEM_SUFFIXES = (".tif", ".tiff")
HIGH_NODATA_PCT = 80.0  # Warn above this share of NoData pixels
_CELL_BYTES = np.dtype(np.float32).itemsize


def _in_wgs84(crs: Any) -> bool:
    try:
        if crs == WGS84:
            return True
    except (TypeError, AttributeError):
        pass
    return str(crs).upper() in ("EPSG:4326", "OGC:CRS84")


def _checked_transform(transform: Any) -> Affine:
    if not isinstance(transform, Affine):
        raise InvalidGeotransformError("Missing affine transform on raster")
    coefficients = (transform.a, transform.b, transform.c, transform.d, transform.e, transform.f)
    if not np.all(np.isfinite(coefficients)):
        raise InvalidGeotransformError(f"Non-finite geotransform: {coefficients}")
    if transform.a == 0 or transform.e == 0:
        raise InvalidGeotransformError("Geotransform has a zero pixel size")
    return transform


class GeoTiffTerrainAdapter:
    """TerrainRepository reading single-band GeoTIFF DEMs.

    Parameters
    ----------
    max_bytes: int | None
        Ceiling on the decoded float32 grid. Checked against the raster (or
        warped) dimensions before pixels are read.
    """

    def __init__(self, max_bytes: int | None = None) -> None:
        self.max_bytes = max_bytes

    def load_dem(self, file_path: Path | str) -> TerrainGrid:
        """Read the DEM at file_path as a WGS84 TerrainGrid.

        Raises:
            FileNotFoundError: Nothing at file_path
            PermissionError: File not readable (message is the file name only)
            InvalidRasterError: Wrong suffix, symlink, empty, not one band, unreadable
            MissingCRSError: No CRS on the raster
            InvalidGeotransformError: Missing, non-finite or zero-size transform
            AllNoDataError: No elevation in any cell
            InvalidBoundsError: Footprint outside longitude/latitude range
            InsufficientMemoryError: Over max_bytes
        """
        path = Path(file_path)
        self._check_file(path)

        try:
            with rasterio.Env(), rasterio.open(path) as src:
                return self._read_grid(src, path.name)
        except PermissionError as e:
            raise PermissionError(path.name) from e
        except RasterioError as e:
            raise InvalidRasterError(f"Corrupted or unreadable DEM {path.name}: {e}") from e
        except MemoryError as e:
            raise InsufficientMemoryError(f"Out of memory decoding {path.name}") from e

    def _check_file(self, path: Path) -> None:
        if not path.exists():
            raise FileNotFoundError(path.name)
        if path.suffix.lower() not in DEM_SUFFIXES:
            raise InvalidRasterError(f"DEM must be GeoTIFF, got extension {path.suffix!r}")
        if path.is_symlink():
            raise InvalidRasterError(f"Symlinked DEM rejected: {path.name}")

        size = path.stat().st_size
        if size == 0:
            raise InvalidRasterError(f"Empty DEM file: {path.name}")
        # Compressed size beyond twice the budget cannot decode within it
        if self.max_bytes is not None and size > 2 * self.max_bytes:
            raise InsufficientMemoryError(
                f"{path.name} is {size}B on disk, over twice the {self.max_bytes}B budget"
            )

    def _check_budget(self, width: int, height: int) -> None:
        needed = int(width) * int(height) * _CELL_BYTES
        if self.max_bytes is not None and needed > self.max_bytes:
            raise InsufficientMemoryError(
                f"Grid of {width}x{height} needs {needed}B, budget is {self.max_bytes}B"
            )

    def _read_grid(self, src: Any, name: str) -> TerrainGrid:
        if src.count != 1:
            raise InvalidRasterError(f"DEM must have exactly 1 band, {name} has {src.count}")
        if src.crs is None:
            raise MissingCRSError(f"DEM {name} has no CRS")

        source_crs = src.crs.to_string()
        transform = _checked_transform(src.transform)

        if _in_wgs84(src.crs):
            self._check_budget(src.width, src.height)
            elevations = self._read_band(src)
        else:
            elevations, transform = self._warp_to_wgs84(src, transform)
            logger.info("DEM %s: Reprojected from %s to EPSG:4326", name, source_crs)

        missing = np.isnan(elevations)
        if missing.all():
            raise AllNoDataError(f"DEM {name} has no elevation data")
        missing_pct = float(missing.mean() * 100.0)
        if missing_pct > HIGH_NODATA_PCT:
            logger.warning("DEM %s: %.1f%% NoData pixels detected", name, missing_pct)

        rows, cols = elevations.shape
        west, south, east, north = array_bounds(rows, cols, transform)
        try:
            footprint = BoundingBox(min_x=west, min_y=south, max_x=east, max_y=north)
        except ValueError as e:
            raise InvalidBoundsError(f"DEM {name} footprint invalid: {e}") from e
        logger.debug("DEM %s: Loaded %dx%d grid", name, cols, rows)

        return TerrainGrid(
            data=elevations,
            bounds=footprint,
            crs="EPSG:4326",
            resolution=(abs(transform.a), abs(transform.e)),
            source_crs=source_crs,
        )

    def _read_band(self, src: Any) -> NDArray[np.float32]:
        band = src.read(1, masked=True, out_dtype="float32")
        mask = np.ma.getmask(band)
        values = np.asarray(np.ma.getdata(band), dtype=np.float32)
        if mask is not np.ma.nomask and mask.any():
            return np.where(mask, np.float32(np.nan), values).astype(np.float32)
        if src.nodata is not None:
            # Declared nodata is stored bit-exact
            values = np.where(values == src.nodata, np.float32(np.nan), values)
        return values

    def _warp_to_wgs84(
        self, src: Any, transform: Affine
    ) -> tuple[NDArray[np.float32], Affine]:
        extent = src.bounds
        warped_transform, cols, rows = calculate_default_transform(
            src.crs,
            WGS84,
            src.width,
            src.height,
            extent.left,
            extent.bottom,
            extent.right,
            extent.top,
        )
        self._check_budget(cols, rows)

        warped = np.full((rows, cols), np.nan, dtype=np.float32)
        reproject(
            source=rasterio.band(src, 1),
            destination=warped,
            src_transform=transform,
            src_crs=src.crs,
            src_nodata=src.nodata,
            dst_transform=warped_transform,
            dst_crs=WGS84,
            dst_nodata=np.nan,
            resampling=Resampling.bilinear,
        )
        return warped, warped_transform
