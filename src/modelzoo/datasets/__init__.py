from .mnist import (
    BASE_URL,
    IDXFormatError,
    MnistSource,
    batched,
    load_images,
    load_labels,
    parse_idx,
    to_batched_list,
    unzip_cache_or_download,
)
from .tagging import ToyTaggingSource

__all__ = [
    "BASE_URL",
    "IDXFormatError",
    "MnistSource",
    "ToyTaggingSource",
    "batched",
    "load_images",
    "load_labels",
    "parse_idx",
    "to_batched_list",
    "unzip_cache_or_download",
]
