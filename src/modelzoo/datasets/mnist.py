import gzip
import logging
import os
import struct

import grain
import numpy as np
import requests

logger = logging.getLogger(__name__)

BASE_URL = "https://storage.googleapis.com/cvdf-datasets/mnist/"

TRAIN_IMAGES = "train-images-idx3-ubyte.gz"
TRAIN_LABELS = "train-labels-idx1-ubyte.gz"
TEST_IMAGES = "t10k-images-idx3-ubyte.gz"
TEST_LABELS = "t10k-labels-idx1-ubyte.gz"

# seconds to wait for the server before giving up
DOWNLOAD_TIMEOUT = 60

# element type code stored in the third byte of the magic number
_UNSIGNED_BYTE = 0x08


class IDXFormatError(ValueError):
    pass


def unzip_cache_or_download(name: str, cache_dir: str = "tmp") -> bytes:
    path = os.path.join(cache_dir, name)

    if os.path.exists(path):
        logger.info(f"Using {name} from {cache_dir}/")
        with open(path, "rb") as f:
            data = f.read()
    else:
        logger.info(f"Fetching {name} from {BASE_URL}")
        response = requests.get(BASE_URL + name, timeout=DOWNLOAD_TIMEOUT)
        response.raise_for_status()
        data = response.content
        os.makedirs(cache_dir, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)

    return gzip.decompress(data)


def parse_idx(data: bytes) -> np.ndarray:
    """Parses a decompressed IDX blob into an array of unsigned bytes.

    The header is a big-endian 32-bit magic number followed by one 32-bit
    size per dimension: ``(magic, count, rows, cols)`` for image files and
    ``(magic, count)`` for label files. The low byte of the magic number holds
    the number of dimensions and the byte before it the element type.
    """
    if len(data) < 4:
        raise IDXFormatError(f"IDX blob too short for a header: {len(data)} bytes")

    zeros, dtype, ndim = struct.unpack_from(">HBB", data, 0)
    if zeros != 0 or dtype != _UNSIGNED_BYTE:
        raise IDXFormatError(
            f"Unsupported IDX magic number: {struct.unpack_from('>I', data)[0]:#010x}"
        )

    offset = 4 + 4 * ndim
    if len(data) < offset:
        raise IDXFormatError(f"IDX header truncated, expected {ndim} dimensions")
    shape = struct.unpack_from(f">{ndim}I", data, 4)

    payload = np.frombuffer(data, dtype=np.uint8, offset=offset)
    if payload.size != int(np.prod(shape)):
        raise IDXFormatError(
            f"IDX payload holds {payload.size} bytes, header declares {shape}"
        )
    return payload.reshape(shape)


def load_images(name: str = TRAIN_IMAGES, cache_dir: str = "tmp") -> np.ndarray:
    images = parse_idx(unzip_cache_or_download(name, cache_dir))
    if images.ndim != 3:
        raise IDXFormatError(f"{name} is not an image file, got shape {images.shape}")
    n_images, n_rows, n_cols = images.shape
    logger.info(f"{n_images} {n_rows}x{n_cols} images")
    return images.astype(np.float32) / 255


def load_labels(name: str = TRAIN_LABELS, cache_dir: str = "tmp") -> np.ndarray:
    labels = parse_idx(unzip_cache_or_download(name, cache_dir))
    if labels.ndim != 1:
        raise IDXFormatError(f"{name} is not a label file, got shape {labels.shape}")
    logger.info(f"{labels.shape[0]} labels")
    return labels.astype(np.int32)


class MnistSource(grain.sources.RandomAccessDataSource):
    def __init__(self, images: np.ndarray, labels: np.ndarray) -> None:
        assert len(images) == len(labels)
        self._images = images
        self._labels = labels

    @classmethod
    def load(cls, split: str = "train", cache_dir: str = "tmp") -> "MnistSource":
        match split:
            case "train":
                names = TRAIN_IMAGES, TRAIN_LABELS
            case "test":
                names = TEST_IMAGES, TEST_LABELS
            case _:
                raise ValueError(f"Unknown split: {split}")
        return cls(load_images(names[0], cache_dir), load_labels(names[1], cache_dir))

    def __getitem__(self, index: int):
        return {"image": self._images[index], "label": self._labels[index]}

    def __len__(self) -> int:
        return len(self._labels)


def batched(
    source,
    batch_size: int = 32,
    drop_remainder: bool = True,
    shuffle_seed: int | None = None,
) -> grain.MapDataset:
    ds = grain.MapDataset.source(source)
    if shuffle_seed is not None:
        ds = ds.shuffle(seed=shuffle_seed)
    return ds.batch(batch_size=batch_size, drop_remainder=drop_remainder)


def to_batched_list(x: np.ndarray, batch_size: int = 32) -> list[np.ndarray]:
    n = len(x) // batch_size
    return [x[i * batch_size : (i + 1) * batch_size] for i in range(n)]
