"""
Calibration Dataset for PyTorch
Serves pre-processed tensor files (.npy / raw float32 .bin) as calibration batches
"""

import logging
from pathlib import Path
from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np
import torch
from torch.utils.data import DataLoader, Dataset

logger = logging.getLogger(__name__)

TENSOR_SUFFIXES = ('.npy', '.bin')


class CalibrationDataset(Dataset):
    """
    Calibration Dataset

    Expected layout: a directory (searched recursively) or a single file
        calib/
            sample_000.npy
            sample_001.npy
            more/
                sample_002.bin     # raw little-endian float32
            ...

    Every file holds one sample of `input_shape[1:]` elements. The file
    list is truncated to a whole number of batches of `input_shape[0]`.

    Args:
        path: Directory or file with calibration samples
        input_shape: Model input shape including the batch dimension (N, ...)
        mean: Subtracted from every sample
        std: Divides every sample after mean subtraction
    """

    def __init__(
        self,
        path: Union[str, Path],
        input_shape: Sequence[int],
        mean: float = 0.0,
        std: float = 1.0
    ):
        if len(input_shape) < 2:
            raise ValueError(f"input_shape must include a batch dimension, got {tuple(input_shape)}")
        if std == 0:
            raise ValueError("std must be non-zero")

        self.path = Path(path)
        self.input_shape = tuple(int(d) for d in input_shape)
        self.mean = mean
        self.std = std

        self.filenames = self._load_filenames()
        if not self.filenames:
            raise ValueError(f"Invalid dataset, should contain one file at least: {self.path}")

        samples = (len(self.filenames) // self.batch_size) * self.batch_size
        if samples < len(self.filenames):
            logger.warning("Dropping %d samples that do not fill a batch of %d",
                           len(self.filenames) - samples, self.batch_size)
        self.filenames = self.filenames[:samples]

        logger.info("Loaded %d calibration samples from %s", len(self.filenames), self.path)

    def _load_filenames(self):
        if self.path.is_dir():
            return sorted(p for p in self.path.rglob('*')
                          if p.is_file() and p.suffix.lower() in TENSOR_SUFFIXES)
        if self.path.exists() and self.path.suffix.lower() in TENSOR_SUFFIXES:
            return [self.path]
        return []

    @property
    def batch_size(self) -> int:
        return self.input_shape[0]

    @property
    def sample_shape(self) -> Tuple[int, ...]:
        return self.input_shape[1:]

    def __len__(self) -> int:
        return len(self.filenames)

    def __getitem__(self, idx: int) -> torch.Tensor:
        """
        Get normalized sample at index

        Returns:
            sample: float32 tensor of sample_shape
        """
        filename = self.filenames[idx]
        if filename.suffix.lower() == '.npy':
            data = np.load(filename)
        else:
            data = np.fromfile(filename, dtype='<f4')

        data = np.asarray(data, dtype=np.float32)
        expected = int(np.prod(self.sample_shape))
        if data.size != expected:
            raise ValueError(
                f"{filename}: expected {expected} elements for shape {self.sample_shape}, "
                f"got {data.size}")

        sample = torch.from_numpy(data.reshape(self.sample_shape))
        return (sample - self.mean) / self.std

    def batches(self, num_workers: int = 0) -> Iterator[torch.Tensor]:
        """Lazy, restartable sequence of (N, ...) batches"""
        loader = DataLoader(
            self,
            batch_size=self.batch_size,
            shuffle=False,
            drop_last=True,
            num_workers=num_workers
        )
        for batch in loader:
            yield batch

    def calibration_batches(self, tensor_id, num_workers: int = 0):
        """(tensor_id, batch) pairs for ptq.calibrate()"""
        for batch in self.batches(num_workers=num_workers):
            yield tensor_id, batch


def create_calibration_dataset(
    path: Union[str, Path],
    input_shape: Sequence[int],
    mean: float = 0.0,
    std: float = 1.0,
    max_samples: Optional[int] = None
) -> CalibrationDataset:
    """
    Create a calibration dataset, optionally capped at max_samples
    (rounded down to whole batches).
    """
    dataset = CalibrationDataset(path, input_shape, mean=mean, std=std)
    if max_samples is not None:
        keep = (min(max_samples, len(dataset)) // dataset.batch_size) * dataset.batch_size
        if keep == 0:
            raise ValueError(f"max_samples={max_samples} is smaller than one batch")
        dataset.filenames = dataset.filenames[:keep]
    return dataset
