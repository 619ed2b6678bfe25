# Copyright (c) MEGVII Inc. and its affiliates. All Rights Reserved.
import logging
from dataclasses import dataclass

from ..bit_type import BitType
from ..errors import InvalidQuantizationState
from ..value_range import ValueRange
from .base import BaseQuantizer, round_half_away

logger = logging.getLogger(__name__)

MIN_RANGE = 0.001
# bias is stored as int32 and reaches 2**bits - 1
MAX_BITS = 31


@dataclass(frozen=True)
class QuantParam:
    """quantized = round(real * scale) + bias"""
    bias: int
    scale: float


def derive_quant_param(value_range, bits, min_range=MIN_RANGE):
    """
    Asymmetric affine parameters mapping a range onto [0, 2**bits - 1].

    The range is first widened to include 0.0 so that zero (padding,
    ReLU clipping) is exactly representable, and its span is floored at
    `min_range` for near-constant tensors.

    Args:
        value_range: ValueRange or (min, max) pair observed for the tensor
        bits: target bit-width
        min_range: smallest span used for the scale

    Returns:
        QuantParam with bias >= 0
    """
    if not isinstance(bits, int) or isinstance(bits, bool) or not 1 <= bits <= MAX_BITS:
        raise ValueError(f"bits must be an integer in [1, {MAX_BITS}], got {bits!r}")
    if not isinstance(value_range, ValueRange):
        value_range = ValueRange(*value_range)

    clamped = value_range.clamped_to_zero()

    r = clamped.span
    if r < min_range:
        r = min_range

    scale = ((1 << bits) - 1) / r
    bias = round_half_away(-clamped.min * scale)
    if not bias >= 0:
        raise InvalidQuantizationState(
            "Derived negative quantization bias",
            range=value_range.as_tuple(), clamped=clamped.as_tuple(),
            bits=bits, scale=scale, bias=bias)

    return QuantParam(bias=int(bias), scale=scale)


class UniformQuantizer(BaseQuantizer):
    """
    Uniform asymmetric quantizer for calibrated tensor outputs.

    Implements: q = clamp(round(x * scale) + bias, 0, 2**bits - 1)
                x' = (q - bias) / scale
    """

    def __init__(self, bit_type, min_range=MIN_RANGE):
        if bit_type.signed:
            # affine outputs are unsigned; the sign lives in the bias
            bit_type = BitType(bits=bit_type.bits, signed=False)
        super(UniformQuantizer, self).__init__(bit_type=bit_type)
        self.min_range = min_range
        self.quant_param = None

    def derive(self, value_range):
        quant_param = derive_quant_param(value_range, self.bit_type.bits, self.min_range)
        logger.debug("derive %s %s -> scale=%g bias=%d", self.bit_type.name,
                     value_range, quant_param.scale, quant_param.bias)
        return quant_param

    def update_quantization_params(self, quant_param):
        if isinstance(quant_param, ValueRange):
            quant_param = self.derive(quant_param)
        self.quant_param = quant_param

    def _check_params(self):
        if self.quant_param is None:
            raise ValueError("Please set quantization params first using update_quantization_params()")
        return self.quant_param

    def quant(self, inputs):
        quant_param = self._check_params()
        outputs = round_half_away(inputs * quant_param.scale) + quant_param.bias
        outputs = outputs.clamp(self.bit_type.lower_bound, self.bit_type.upper_bound)
        return outputs

    def dequantize(self, inputs):
        quant_param = self._check_params()
        outputs = (inputs - quant_param.bias) / quant_param.scale
        return outputs
