# Copyright (c) MEGVII Inc. and its affiliates. All Rights Reserved.
import math

import torch
import torch.nn as nn


def round_half_away(x):
    """Round to nearest, ties away from zero (Python's round() ties to even)."""
    # compare the fraction; abs(x) + 0.5 itself can round up to the next integer
    if isinstance(x, torch.Tensor):
        magnitude = x.abs()
        whole = torch.floor(magnitude)
        whole = whole + (magnitude - whole >= 0.5).to(whole.dtype)
        return torch.sign(x) * whole
    magnitude = abs(x)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return math.copysign(whole, x)


class BaseQuantizer(nn.Module):

    def __init__(self, bit_type):
        super(BaseQuantizer, self).__init__()
        self.bit_type = bit_type

    def update_quantization_params(self, *args, **kwargs):
        pass

    def quant(self, inputs):
        raise NotImplementedError

    def dequantize(self, inputs):
        raise NotImplementedError

    def forward(self, inputs):
        outputs = self.quant(inputs)
        outputs = self.dequantize(outputs)
        return outputs
