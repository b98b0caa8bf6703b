"""Internal constants shared across the library."""

from __future__ import annotations

USER_AGENT = "trackhub/1.0"

SERVICE_PATH = "/service.sbr"
LOGIN_SERVICE = "MobileLoginSP.login"
QUERY_SERVICE = "DbExplorerSP.executeQuery"
SAVE_SERVICE = "DatasetSP.save"

# Envelope ``status`` values returned by service.sbr.
STATUS_SUCCESS = "1"
STATUS_UNAUTHORIZED = "3"

DEFAULT_RESPONSE_ENCODING = "iso-8859-1"
DEFAULT_REQUEST_TIMEOUT: float = 120.0

DATASET_ID = "01S"

# ------------------------------------------------------------------
# Timestamp formats
# ------------------------------------------------------------------

#: Format of ``DATHOR`` as returned by DbExplorerSP queries (07112025 13:58:42).
STORE_READ_FORMAT = "%d%m%Y %H:%M:%S"
#: Format expected by DatasetSP.save for ``DATHOR`` (03/11/2025 08:38:00).
STORE_INSERT_FORMAT = "%d/%m/%Y %H:%M:%S"
#: Atualcargo position timestamp format (2025-11-07 15:38:12).
ATUALCARGO_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAP_LINK_TEMPLATE = "https://maps.google.com/?q={lat},{lon}"
LOCATION_PLACEHOLDER = "Localização não informada"

#: Prefix Atualcargo uses on tracker (isca) plates, e.g. ``ISCA0189``.
TRACKER_PLATE_PREFIX = "ISCA"
