# File dispatch and batch import

from .batch import (
    UploadRegistry,
    compute_message_id,
    decode_file,
    import_files,
    resolve_file_kind,
)

__all__ = [
    "UploadRegistry",
    "compute_message_id",
    "decode_file",
    "import_files",
    "resolve_file_kind",
]
