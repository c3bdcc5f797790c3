"""Core constants used across Facility Atlas modules.

This module centralizes pipeline limits, defaults, and table names.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEFAULT_SOURCE_URL = "https://findtreatment.gov/locator/exportsAsJson/v2"
DEFAULT_SOURCE_NAME = "SAMHSA FindTreatment"
DEFAULT_SOURCE_QUERY = {
    "sAddr": "Kansas City KS",
    "limitType": "2",
    "limitValue": "5000000",
}
DEFAULT_SOURCE_PAGE_SIZE = 100
DEFAULT_REQUEST_DELAY_SECONDS = 0.1
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_SECONDS = 1.0
SOURCE_USER_AGENT = "FacilityAtlas/1.0 (Data Sync)"

STORE_MAX_ROWS_PER_CALL = 1000
DEFAULT_UPSERT_CHUNK_SIZE = 1000
DEFAULT_READ_PAGE_SIZE = 1000
DEFAULT_DELETE_BATCH_SIZE = 100

DEFAULT_INDEXABLE_THRESHOLD = 0.70
DEFAULT_CHANGE_THRESHOLD = 0.01
DEFAULT_LOG_LEVEL = "INFO"

SLUG_MAX_LENGTH = 100
SLUG_SUFFIX_WIDTH = 6
QUALITY_SCORE_DECIMALS = 2
QUALITY_BASE_FIELD_COUNT = 10

FACILITIES_TABLE = "facilities"
STATES_TABLE = "states"
CITIES_TABLE = "cities"
INGEST_METADATA_TABLE = "ingest_metadata"
INGEST_METADATA_ROW_ID = 1

SERVICE_CATEGORY_FIELDS = {
    "TC": "type_of_care",
    "SET": "service_settings",
    "PAY": "payment_options",
    "AGE": "age_groups",
    "SG": "special_programs",
}
