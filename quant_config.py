from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class BitTypeConfig:
    bits: int = 8
    signed: bool = False
    name: str = 'uint8'

    def __post_init__(self):
        if not isinstance(self.bits, int) or not 1 <= self.bits <= 31:
            raise ValueError(f"bits must be an integer in [1, 31], got {self.bits!r}")


@dataclass
class FixedMulConfig:
    """Multiply-shift unit of the target: (x * multiplier) >> shift."""
    max_bits: int = 32
    max_shift: int = 31
    signed: bool = True
    # None -> float32 machine epsilon
    eps: Optional[float] = None

    def __post_init__(self):
        min_bits = 2 if self.signed else 1
        if self.max_bits < min_bits:
            raise ValueError(
                f"max_bits must be >= {min_bits} for signed={self.signed}, got {self.max_bits}")
        if self.max_shift < 0:
            raise ValueError(f"max_shift must be non-negative, got {self.max_shift}")


@dataclass
class QuantConfig:
    bit_type: BitTypeConfig = field(default_factory=lambda: BitTypeConfig())
    fixed_mul: FixedMulConfig = field(default_factory=lambda: FixedMulConfig())

    # degenerate ranges are widened to this span
    min_range: float = 0.001


@dataclass
class LayerQuantConfig:
    """
    Tensor-specific quantization configuration.

    Manages default quantization settings and per-tensor overrides.
    When a tensor is requested via get_config(), it returns the tensor-specific
    config if available, otherwise falls back to the default config.
    """
    default_config: QuantConfig = field(default_factory=lambda: QuantConfig())
    layer_configs: Dict[str, QuantConfig] = field(default_factory=dict)

    def get_config(self, layer_name: Optional[str]) -> QuantConfig:
        """
        Get quantization config for a specific tensor.

        Args:
            layer_name: Name of the tensor output (e.g., 'conv1.output'), or None

        Returns:
            QuantConfig for the tensor (tensor-specific if available, else default)
        """
        if layer_name is None:
            return self.default_config
        return self.layer_configs.get(layer_name, self.default_config)
