from .base import BaseQuantizer, round_half_away
from .uniform import UniformQuantizer, QuantParam, derive_quant_param
from .fixed_point import FixedMul, encode_fixed_mul


__all__ = [
    'BaseQuantizer',
    'UniformQuantizer',
    'QuantParam',
    'derive_quant_param',
    'FixedMul',
    'encode_fixed_mul',
    'round_half_away',
]
