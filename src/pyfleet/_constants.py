"""Internal constants shared across the library."""

USER_AGENT = "pyfleet/1"

# Human-readable location names as stored in the hosted event log.
RISK_ZONE_NAME = "Salida Por Tango"
SAFE_ZONE_NAME = "En Tienda"

DEFAULT_EVENTS_TABLE = "Reportes"
DEFAULT_VEHICLES_TABLE = "Coches"

# Column names used by the hosted store.
COL_REPORT_ID = "idReporte"
COL_TIMESTAMP = "FechaHora"
COL_VEHICLE_ID = "IdCoche"
COL_LOCATION = "Ubicacion"
COL_REPORTER_COUNT = "NCPU"
COL_MIRROR_VEHICLE_ID = "idCoche"
COL_MIRROR_LOCATION = "UbicacionActual"

# Age bucket lower bounds, in minutes.
BUCKET_5_MIN = 5.0
BUCKET_10_MIN = 10.0
BUCKET_60_MIN = 60.0
