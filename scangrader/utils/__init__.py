# Utils module
from .helpers import (
    ensure_directory,
    get_file_extension,
    is_valid_image,
    list_files,
    list_scans,
    generate_timestamp_id,
)

__all__ = [
    "ensure_directory",
    "get_file_extension",
    "is_valid_image",
    "list_files",
    "list_scans",
    "generate_timestamp_id",
]
