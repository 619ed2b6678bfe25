# Copyright (c) MEGVII Inc. and its affiliates.
# All Rights Reserved.
import logging
import threading

import torch

from ..errors import EmptySampleSet, UnknownTensor
from ..value_range import ValueRange
from .base import BaseObserver

logger = logging.getLogger(__name__)


class MinmaxObserver(BaseObserver):
    """
    Running min/max per tensor output.

    Ranges are merged by union, so the result does not depend on the
    order batches are seen in, nor on how partial observers are merged.
    """

    def __init__(self, dtype=torch.float32):
        super(MinmaxObserver, self).__init__(dtype=dtype)
        self.ranges = {}
        self._lock = threading.Lock()

    def record_range(self, tensor_id, value_range):
        if not isinstance(value_range, ValueRange):
            value_range = ValueRange(*value_range)

        with self._lock:
            old = self.ranges.get(tensor_id)
            if old is None:
                self.ranges[tensor_id] = value_range
            else:
                self.ranges[tensor_id] = old | value_range
            merged = self.ranges[tensor_id]

        logger.debug("record %r: [%g, %g] -> [%g, %g]",
                     tensor_id, value_range.min, value_range.max, merged.min, merged.max)
        return merged

    def compute_range(self, v):
        """Min/max of one batch; no store access."""
        v = self.reshape_tensor(v)
        if v.numel() == 0:
            raise EmptySampleSet("Calibration batch contains no samples")

        cur_min, cur_max = torch.aminmax(v)
        return ValueRange(cur_min.item(), cur_max.item())

    def update(self, tensor_id, v):
        # the scan runs outside the lock, only the merge is serialized
        try:
            value_range = self.compute_range(v)
        except EmptySampleSet as e:
            raise EmptySampleSet(f"{e} (tensor {tensor_id!r})") from None
        return self.record_range(tensor_id, value_range)

    def get_range(self, tensor_id):
        try:
            return self.ranges[tensor_id]
        except KeyError:
            raise UnknownTensor(tensor_id) from None

    def merge(self, other):
        """Fold every range of another observer into this one."""
        with other._lock:
            items = list(other.ranges.items())
        for tensor_id, value_range in items:
            self.record_range(tensor_id, value_range)

    def __contains__(self, tensor_id):
        return tensor_id in self.ranges

    def __len__(self):
        return len(self.ranges)

    def clear(self):
        with self._lock:
            self.ranges.clear()
