"""Record search: field-group matching and debounced query state."""
from .engine import filter_records, matched_fields, highlight, record_matches
from .query import SearchSession
