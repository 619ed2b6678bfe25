# Copyright (c) MEGVII Inc. and its affiliates. All Rights Reserved.
import numpy as np
import torch


class BaseObserver:
    def __init__(self, dtype=torch.float32):
        # calibration samples are scanned in this precision
        self.dtype = dtype
        self.eps = torch.finfo(dtype).eps

    def reshape_tensor(self, v):
        """Flatten a calibration batch; its shape is not interpreted."""
        if isinstance(v, torch.Tensor):
            v = v.detach()
        elif isinstance(v, np.ndarray):
            v = torch.from_numpy(v)
        else:
            try:
                v = torch.as_tensor(v)
            except (TypeError, ValueError, RuntimeError) as e:
                raise TypeError(
                    f"Expected torch.Tensor, numpy array or sequence of reals "
                    f"but got {type(v).__name__}"
                ) from e

        return v.to(self.dtype).reshape(-1)

    def record_range(self, tensor_id, value_range):
        raise NotImplementedError

    def update(self, tensor_id, v):
        # update the tracked range of tensor_id
        raise NotImplementedError

    def get_range(self, tensor_id):
        raise NotImplementedError
