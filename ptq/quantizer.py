import logging

import torch

from quant_config import QuantConfig, LayerQuantConfig
from .layer_observer import MinmaxObserver
from .layer_quantizer import derive_quant_param, encode_fixed_mul
from .value_range import ValueRange

logger = logging.getLogger(__name__)


def tensor_name(tensor_id):
    """Name used for config lookup: the id itself if it is a str, else its `name`."""
    if isinstance(tensor_id, str):
        return tensor_id
    name = getattr(tensor_id, 'name', None)
    return name if isinstance(name, str) else None


class Quantizer:
    """
    Keyed store of calibration ranges for one compilation run.

    Tensor ids are any hashable object. Graph connectors that keep the
    default object hash are tracked by identity.

    Usage:
        quantizer = Quantizer(load_config_from_yaml('configs/target.yaml'))
        for batch in dataset.batches():
            quantizer.record(conv1_output, run_to(conv1_output, batch))
        qp = quantizer.get_quant_param(conv1_output)
        fm = quantizer.get_fixed_mul(qp.scale / weights_scale)
    """

    def __init__(self, config=None, dtype=torch.float32):
        if config is None:
            config = LayerQuantConfig()
        elif isinstance(config, QuantConfig):
            config = LayerQuantConfig(default_config=config)
        self.config = config
        self.observer = MinmaxObserver(dtype=dtype)

    def get_config(self, tensor_id=None) -> QuantConfig:
        return self.config.get_config(tensor_name(tensor_id))

    # ---- range tracking ----

    def record(self, tensor_id, data):
        """Record a ValueRange or a batch of samples (tensor, array, sequence)."""
        if isinstance(data, ValueRange):
            return self.record_range(tensor_id, data)
        return self.record_samples(tensor_id, data)

    def record_range(self, tensor_id, value_range):
        return self.observer.record_range(tensor_id, value_range)

    def record_samples(self, tensor_id, samples):
        return self.observer.update(tensor_id, samples)

    def get(self, tensor_id) -> ValueRange:
        return self.observer.get_range(tensor_id)

    get_range = get

    def merge(self, other):
        self.observer.merge(other.observer)

    # ---- parameter derivation ----

    def get_quant_param(self, tensor_id, bits=None):
        config = self.get_config(tensor_id)
        if bits is None:
            bits = config.bit_type.bits
        value_range = self.get(tensor_id)
        quant_param = derive_quant_param(value_range, bits, config.min_range)
        logger.debug("quant_param %r (%d bits) %s -> scale=%g bias=%d",
                     tensor_id, bits, value_range, quant_param.scale, quant_param.bias)
        return quant_param

    def quant_params(self, bits=None):
        """QuantParam of every recorded tensor"""
        return {tensor_id: self.get_quant_param(tensor_id, bits) for tensor_id in self}

    def get_fixed_mul(self, value, max_bits=None, max_shift=None, is_signed=None, tensor_id=None):
        """Stateless: encode value with the given (or configured) multiplier profile."""
        profile = self.get_config(tensor_id).fixed_mul
        return encode_fixed_mul(
            value,
            max_bits=profile.max_bits if max_bits is None else max_bits,
            max_shift=profile.max_shift if max_shift is None else max_shift,
            is_signed=profile.signed if is_signed is None else is_signed,
            eps=profile.eps
        )

    # ---- container protocol ----

    def __contains__(self, tensor_id):
        return tensor_id in self.observer

    def __len__(self):
        return len(self.observer)

    def __iter__(self):
        return iter(list(self.observer.ranges))

    def items(self):
        return list(self.observer.ranges.items())

    def clear(self):
        self.observer.clear()
