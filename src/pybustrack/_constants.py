"""Internal constants shared across the library."""

#: Mean Earth radius used by the haversine metric, in meters.
EARTH_RADIUS_M = 6_371_000.0

# ------------------------------------------------------------------
# Spatial index defaults (deployment area around Puno, degrees)
# ------------------------------------------------------------------

DEFAULT_BOUNDARY_CENTER_LAT = -15.84
DEFAULT_BOUNDARY_CENTER_LON = -70.02
DEFAULT_BOUNDARY_HALF_EXTENT = 0.05
DEFAULT_NODE_CAPACITY = 4

# Half-extent of the window searched around a nearest-stop query.
DEFAULT_NEAREST_HALF_EXTENT = 0.01

# ------------------------------------------------------------------
# Coverage grid
# ------------------------------------------------------------------

# ~100 m at the deployment latitude.
DEFAULT_CELL_SIZE_DEG = 0.001

# ------------------------------------------------------------------
# Liveness policy (seconds)
# ------------------------------------------------------------------

DEFAULT_WAITING_AFTER_S = 60.0
DEFAULT_OFFLINE_AFTER_S = 65.0
