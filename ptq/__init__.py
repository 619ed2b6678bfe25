"""Calibration quantizer for fixed-point accelerators

Tracks per-tensor value ranges during calibration and derives:
- affine quantization params (scale, bias) per tensor output
- fixed-point multipliers (multiplier, shift) for integer multiply-shift units
"""

from .bit_type import BitType
from .calibration import CalibrationStats, calibrate
from .errors import (
    QuantizationError,
    EmptySampleSet,
    InvalidRange,
    UnknownTensor,
    InvalidSignedValue,
    InvalidQuantizationState,
)
from .layer_observer import MinmaxObserver
from .layer_quantizer import (
    FixedMul,
    QuantParam,
    UniformQuantizer,
    derive_quant_param,
    encode_fixed_mul,
)
from .quantizer import Quantizer
from .value_range import ValueRange

__version__ = '0.1.0'

__all__ = [
    'BitType',
    'CalibrationStats',
    'calibrate',
    'QuantizationError',
    'EmptySampleSet',
    'InvalidRange',
    'UnknownTensor',
    'InvalidSignedValue',
    'InvalidQuantizationState',
    'MinmaxObserver',
    'FixedMul',
    'QuantParam',
    'UniformQuantizer',
    'derive_quant_param',
    'encode_fixed_mul',
    'Quantizer',
    'ValueRange',
]
