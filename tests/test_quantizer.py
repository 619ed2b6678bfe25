import pytest
import torch

from ptq import (
    FixedMul,
    InvalidSignedValue,
    QuantParam,
    Quantizer,
    UniformQuantizer,
    UnknownTensor,
    ValueRange,
)
from ptq.layer_profiler import StatProfiler
from quant_config import FixedMulConfig, QuantConfig


def test_record_and_get(quantizer):
    quantizer.record('conv1.output', ValueRange(-1.0, 3.0))
    quantizer.record('conv1.output', ValueRange(-2.0, 1.0))
    assert quantizer.get('conv1.output') == ValueRange(-2.0, 3.0)
    assert quantizer.get_range('conv1.output') == ValueRange(-2.0, 3.0)


def test_record_samples_dispatch(quantizer):
    quantizer.record('t', torch.tensor([0.5, -0.25, 2.0]))
    quantizer.record('t', [4.0])
    assert quantizer.get('t') == ValueRange(-0.25, 4.0)


def test_identity_keys(quantizer, connector_factory):
    a, b = connector_factory(), connector_factory()
    quantizer.record_range(a, ValueRange(-1.0, 1.0))
    quantizer.record_range(b, ValueRange(0.0, 8.0))
    assert len(quantizer) == 2
    assert quantizer.get(a) == ValueRange(-1.0, 1.0)
    assert quantizer.get(b) == ValueRange(0.0, 8.0)
    assert connector_factory() not in quantizer


def test_unknown_tensor(quantizer):
    with pytest.raises(UnknownTensor):
        quantizer.get('missing')
    with pytest.raises(UnknownTensor):
        quantizer.get_quant_param('missing')


def test_get_quant_param(quantizer):
    quantizer.record('t', ValueRange(-2.0, 3.0))
    assert quantizer.get_quant_param('t') == QuantParam(bias=102, scale=51.0)
    assert quantizer.get_quant_param('t', bits=16).scale == pytest.approx(65535 / 5.0)


def test_get_quant_param_does_not_build_modules(quantizer, monkeypatch):
    def no_module(*args, **kwargs):
        raise AssertionError("parameter derivation must not construct a quantizer module")

    monkeypatch.setattr(UniformQuantizer, '__init__', no_module)
    quantizer.record('t', ValueRange(-2.0, 3.0))
    assert quantizer.get_quant_param('t') == QuantParam(bias=102, scale=51.0)
    assert quantizer.quant_params() == {'t': QuantParam(bias=102, scale=51.0)}


def test_per_tensor_config(layer_config, connector_factory):
    quantizer = Quantizer(layer_config)
    quantizer.record('residual1.output', ValueRange(0.0, 5.0))
    quantizer.record('fc.output', ValueRange(0.0, 5.0))
    named = connector_factory('residual1.output')
    quantizer.record(named, ValueRange(0.0, 5.0))

    assert quantizer.get_quant_param('residual1.output').scale == 65535 / 5.0
    assert quantizer.get_quant_param('fc.output').scale == 51.0
    assert quantizer.get_quant_param(named).scale == 65535 / 5.0
    # explicit bits win over config
    assert quantizer.get_quant_param('residual1.output', bits=8).scale == 51.0


def test_quant_params_of_all_tensors(quantizer):
    quantizer.record('a', ValueRange(-2.0, 3.0))
    quantizer.record('b', ValueRange(1.0, 2.0))
    params = quantizer.quant_params()
    assert params == {
        'a': QuantParam(bias=102, scale=51.0),
        'b': QuantParam(bias=0, scale=127.5),
    }


def test_get_fixed_mul_defaults_to_config_profile(quantizer):
    fm = quantizer.get_fixed_mul(0.5)
    # int32 multiplier with sign bit, 31-bit shift budget
    assert fm == FixedMul(multiplier=2.0**30, shift=31)
    with pytest.raises(InvalidSignedValue):
        quantizer.get_fixed_mul(-0.5)
    assert quantizer.get_fixed_mul(-0.5, is_signed=False).value == -0.5


def test_get_fixed_mul_explicit_profile():
    quantizer = Quantizer(QuantConfig(fixed_mul=FixedMulConfig(max_bits=8, max_shift=8, signed=False)))
    assert quantizer.get_fixed_mul(0.5) == FixedMul(multiplier=128.0, shift=8)
    assert quantizer.get_fixed_mul(0.5, max_bits=8, max_shift=8, is_signed=True) == FixedMul(64.0, 7)


def test_get_fixed_mul_is_stateless(quantizer):
    quantizer.get_fixed_mul(3.0)
    assert len(quantizer) == 0


def test_merge_and_clear(quantizer):
    other = Quantizer()
    quantizer.record('t', ValueRange(-1.0, 1.0))
    other.record('t', ValueRange(0.0, 4.0))
    other.record('u', ValueRange(2.0, 3.0))
    quantizer.merge(other)
    assert dict(quantizer.items()) == {
        't': ValueRange(-1.0, 4.0),
        'u': ValueRange(2.0, 3.0),
    }
    assert sorted(quantizer) == ['t', 'u']

    quantizer.clear()
    assert len(quantizer) == 0


def test_stat_profiler_reports_small_error(quantizer):
    samples = torch.rand(1024) * 4.0 - 1.0
    quantizer.record('t', samples)
    stats = StatProfiler.profile(quantizer, 't', samples)

    qp = quantizer.get_quant_param('t')
    assert stats['scale'] == qp.scale
    assert stats['bias'] == qp.bias
    assert stats['mse'] <= (0.5 / qp.scale) ** 2
    assert stats['qsnr'] > 30.0
    assert stats['cosine_sim'] > 0.999
