from .io import sha256sum, write_results, write_table
from .tables import SurveyTables, prepare_observations, prepare_surveys, read_tables, series_key

__all__ = [
    "SurveyTables",
    "prepare_observations",
    "prepare_surveys",
    "read_tables",
    "series_key",
    "sha256sum",
    "write_results",
    "write_table",
]
