"""
Fixed-point encoding of real multipliers for integer multiply-shift units.

The target computes ``result = (input * multiplier) >> shift``.
encode_fixed_mul() picks the largest-precision multiplier that fits the
unit's magnitude bits and shift budget and still reconstructs the real
value to float precision.
"""
import logging
import math
from dataclasses import dataclass

import torch

from ..bit_type import BitType
from ..errors import InvalidQuantizationState, InvalidSignedValue
from .base import round_half_away

logger = logging.getLogger(__name__)

# calibration tensors are float32
DEFAULT_EPS = torch.finfo(torch.float32).eps


@dataclass(frozen=True)
class FixedMul:
    multiplier: float
    shift: int

    @property
    def rounded_multiplier(self) -> int:
        """Integer mantissa loaded into the multiply unit"""
        return int(round_half_away(self.multiplier))

    @property
    def value(self) -> float:
        """Real value represented by multiplier * 2**-shift"""
        return math.ldexp(self.multiplier, -self.shift)


def encode_fixed_mul(value, max_bits, max_shift, is_signed, eps=None):
    """
    Encode `value` as multiplier * 2**-shift.

    Args:
        value: real scalar to encode; must be >= 0 when is_signed
        max_bits: width of the multiplier register
        max_shift: largest right shift the unit supports
        is_signed: reserve one bit of max_bits for the sign
        eps: reconstruction tolerance, float32 epsilon by default

    Returns:
        FixedMul with |multiplier| < 2**bits and 0 <= shift <= max_shift

    Raises:
        InvalidSignedValue: negative value in a signed context
        InvalidQuantizationState: no encoding within the budget
            reconstructs value (e.g. value too large for max_bits)
    """
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"Cannot encode non-finite value {value}")
    if max_shift < 0:
        raise ValueError(f"max_shift must be non-negative, got {max_shift}")
    if is_signed and value < 0:
        raise InvalidSignedValue(
            f"Signed fixed-point multiplier requires a non-negative value, got {value}")
    if eps is None:
        eps = DEFAULT_EPS

    bits = BitType(bits=int(max_bits), signed=is_signed).magnitude_bits
    if bits < 1:
        raise ValueError(f"max_bits={max_bits} leaves no magnitude bits (is_signed={is_signed})")

    if abs(value) > 1:
        mul, mul_shift = math.frexp(value)
        shift = min(max_shift, bits - mul_shift)
        mul = math.ldexp(mul, shift + mul_shift)
    elif value == 0:
        mul, shift = 0.0, 0
    else:
        mul, mul_shift = math.frexp(value)
        shift = min(max_shift + mul_shift, bits)
        mul = math.ldexp(mul, shift)
        shift -= mul_shift

    context = dict(value=value, max_bits=max_bits, bits=bits, max_shift=max_shift,
                   is_signed=is_signed, multiplier=mul, shift=shift)
    if not abs(mul) < 2**bits:
        raise InvalidQuantizationState("Fixed-point multiplier exceeds magnitude bits", **context)
    if not 0 <= shift <= max_shift:
        raise InvalidQuantizationState("Fixed-point shift outside [0, max_shift]", **context)
    error = abs(value - math.ldexp(mul, -shift))
    if not error <= eps:
        raise InvalidQuantizationState(
            "Fixed-point multiplier does not reconstruct value", error=error, eps=eps, **context)

    logger.debug("fixed_mul %g -> %g >> %d", value, mul, shift)
    return FixedMul(multiplier=mul, shift=shift)
