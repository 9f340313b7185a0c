"""
Vehicle Lookup configuration: paths, endpoints, field layout, constants.
"""
import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Paths (override with VEHICLE_LOOKUP_DATA_DIR env var for deployment)
# ---------------------------------------------------------------------------
_data_dir = Path(os.environ.get("VEHICLE_LOOKUP_DATA_DIR", str(Path.home() / ".vehicle_lookup")))
BASE_FOLDER = _data_dir
CACHE_FOLDER = _data_dir / "cache"
PREFERENCES_FOLDER = _data_dir / "preferences"

# ---------------------------------------------------------------------------
# Remote endpoints baked in at deploy time (empty string = not configured)
# ---------------------------------------------------------------------------
JSON_URL = os.environ.get("VEHICLE_LOOKUP_JSON_URL", "").strip() or None
EXCEL_URL = os.environ.get("VEHICLE_LOOKUP_EXCEL_URL", "").strip() or None

# Keys for learned endpoint overrides
PREFERENCES_JSON_URL_KEY = "config_json_url"
PREFERENCES_EXCEL_URL_KEY = "config_excel_url"

HTTP_TIMEOUT = float(os.environ.get("VEHICLE_LOOKUP_HTTP_TIMEOUT", "30"))

# ---------------------------------------------------------------------------
# Offline cache
# Bump CACHE_VERSION whenever the record shape changes; older entries are
# discarded on load.
# ---------------------------------------------------------------------------
CACHE_KEY = "records_cache_data"
CACHE_TIMESTAMP_KEY = "records_cache_timestamp"
CACHE_VERSION_KEY = "records_cache_version"
CACHE_VERSION = "1.0"

_quota = os.environ.get("VEHICLE_LOOKUP_CACHE_QUOTA", "").strip()
CACHE_QUOTA_BYTES = int(_quota) if _quota else None

# Start with the connectivity flag off (field use without network)
START_OFFLINE = os.environ.get("VEHICLE_LOOKUP_OFFLINE", "0") == "1"

# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
SEARCH_DEBOUNCE_MS = int(os.environ.get("VEHICLE_LOOKUP_DEBOUNCE_MS", "200"))

# ---------------------------------------------------------------------------
# Record layout: one row per household
# Vehicle slots 1..5, student slots 1..4. Slot field names are declared here
# once and iterated everywhere else.
# ---------------------------------------------------------------------------
VEHICLE_SLOTS = 5
STUDENT_SLOTS = 4

PLATE_FIELDS = ("Placa1", "Placa2", "Placa3", "Placa4", "Placa5")
STICKER_FIELDS = ("Adesivo1", "Adesivo2", "Adesivo3", "Adesivo4", "Adesivo5")
MODEL_FIELDS = (
    "Marca/Modelo1", "Marca/Modelo2", "Marca/Modelo3", "Marca/Modelo4", "Marca/Modelo5",
)
STUDENT_FIELDS = ("Aluno1", "Aluno2", "Aluno3", "Aluno4")
GRADE_FIELDS = ("SÉRIE1", "SÉRIE2", "SÉRIE3", "SÉRIE4")
# Some exports drop the accent from the grade header
GRADE_FALLBACK_FIELDS = ("SERIE1", "SERIE2", "SERIE3", "SERIE4")

FATHER_FIELD = "Pai"
MOTHER_FIELD = "Mãe"
ID_FIELD = "Identificação"
MOBILE_FIELD = "Celular"
HOME_PHONE_FIELD = "Telefone Residencial"
FATHER_EMAIL_FIELD = "Email Pai"
MOTHER_EMAIL_FIELD = "Email Mãe"
YEAR_FIELD = "Anocadastro"

GUARDIAN_FIELDS = (FATHER_FIELD, MOTHER_FIELD, ID_FIELD)
CONTACT_FIELDS = (FATHER_EMAIL_FIELD, MOTHER_EMAIL_FIELD, MOBILE_FIELD, HOME_PHONE_FIELD)

# ---------------------------------------------------------------------------
# Search field groups (evaluation stops at the first hit)
# ---------------------------------------------------------------------------
ALL_FIELDS_GROUPS = (
    ("plates", PLATE_FIELDS),
    ("stickers", STICKER_FIELDS),
    ("models", MODEL_FIELDS),
    ("students", STUDENT_FIELDS),
    ("guardians", GUARDIAN_FIELDS),
    ("contacts", CONTACT_FIELDS),
)
STICKER_ONLY_GROUPS = (
    ("stickers", STICKER_FIELDS),
)
