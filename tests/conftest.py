import pytest
import torch

from ptq import Quantizer
from quant_config import BitTypeConfig, LayerQuantConfig, QuantConfig


class Connector:
    """Stand-in for a graph output connector: hashed by identity."""

    def __init__(self, name=None):
        if name is not None:
            self.name = name

    def __repr__(self):
        return f"Connector({getattr(self, 'name', id(self))})"


@pytest.fixture
def quantizer():
    return Quantizer()


@pytest.fixture
def layer_config():
    return LayerQuantConfig(
        default_config=QuantConfig(),
        layer_configs={
            'residual1.output': QuantConfig(bit_type=BitTypeConfig(bits=16, name='uint16')),
        }
    )


@pytest.fixture
def connector_factory():
    return Connector


@pytest.fixture(autouse=True)
def _seed():
    torch.manual_seed(0)
