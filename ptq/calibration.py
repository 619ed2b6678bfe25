import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .errors import EmptySampleSet

logger = logging.getLogger(__name__)


@dataclass
class CalibrationStats:
    batches: int = 0
    skipped: int = 0
    tensors: set = field(default_factory=set)

    @property
    def num_tensors(self):
        return len(self.tensors)

    def count(self, tensor_id, recorded):
        self.batches += 1
        if recorded:
            self.tensors.add(tensor_id)
        else:
            self.skipped += 1


def _record_batch(quantizer, tensor_id, samples, skip_empty):
    # the scan runs unlocked; the store lock is taken for the merge only
    try:
        quantizer.record_samples(tensor_id, samples)
    except EmptySampleSet:
        if not skip_empty:
            raise
        logger.warning("Skipping empty calibration batch for tensor %r", tensor_id)
        return False
    return True


def calibrate(quantizer, batches, num_workers=1, skip_empty=False):
    """
    Fold calibration batches into a quantizer.

    Range union is order independent, so batches may be recorded in any
    order and from several threads. With several workers at most
    2 * num_workers batches are read ahead of the recorded ones, and the
    first failure cancels the batches still queued.

    Args:
        quantizer: Quantizer receiving the ranges
        batches: iterable of (tensor_id, samples) pairs
        num_workers: threads scanning batches; 1 runs inline
        skip_empty: skip EmptySampleSet batches instead of aborting

    Returns:
        CalibrationStats
    """
    if num_workers < 1:
        raise ValueError(f"num_workers must be >= 1, got {num_workers}")

    stats = CalibrationStats()

    if num_workers == 1:
        for tensor_id, samples in batches:
            stats.count(tensor_id, _record_batch(quantizer, tensor_id, samples, skip_empty))
    else:
        window = 2 * num_workers
        pending = deque()
        with ThreadPoolExecutor(max_workers=num_workers) as executor:
            try:
                for tensor_id, samples in batches:
                    if len(pending) >= window:
                        done_id, future = pending.popleft()
                        stats.count(done_id, future.result())
                    pending.append(
                        (tensor_id, executor.submit(_record_batch, quantizer, tensor_id, samples, skip_empty)))
                while pending:
                    done_id, future = pending.popleft()
                    stats.count(done_id, future.result())
            except Exception:
                # the store is abandoned; do not scan what is still queued
                for _, future in pending:
                    future.cancel()
                raise

    logger.info("Calibration done: %d batches, %d skipped, %d tensors",
                stats.batches, stats.skipped, stats.num_tensors)
    return stats
