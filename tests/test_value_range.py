import itertools

import numpy as np
import pytest
import torch

from ptq import EmptySampleSet, InvalidRange, MinmaxObserver, UnknownTensor, ValueRange


def test_value_range_rejects_inverted_and_nan():
    with pytest.raises(InvalidRange):
        ValueRange(3.0, -1.0)
    with pytest.raises(InvalidRange):
        ValueRange(float('nan'), 1.0)
    # InvalidRange is a ValueError for callers that do not know the taxonomy
    with pytest.raises(ValueError):
        ValueRange(1.0, 0.0)


def test_value_range_helpers():
    r = ValueRange(1.0, 2.0)
    assert r.span == 1.0
    assert not r.contains_zero
    assert r.clamped_to_zero() == ValueRange(0.0, 2.0)
    assert ValueRange(-4.0, -2.0).clamped_to_zero() == ValueRange(-4.0, 0.0)
    assert ValueRange(-1.0, 1.0).clamped_to_zero() == ValueRange(-1.0, 1.0)
    assert (ValueRange(-1.0, 3.0) | ValueRange(-2.0, 1.0)) == ValueRange(-2.0, 3.0)


def test_record_range_merges_by_union():
    observer = MinmaxObserver()
    observer.record_range('t', ValueRange(-1.0, 3.0))
    observer.record_range('t', ValueRange(-2.0, 1.0))
    assert observer.get_range('t') == ValueRange(-2.0, 3.0)


def test_record_range_accepts_pairs():
    observer = MinmaxObserver()
    observer.record_range('t', (0.5, 1.5))
    assert observer.get_range('t') == ValueRange(0.5, 1.5)
    with pytest.raises(InvalidRange):
        observer.record_range('t', (2.0, 1.0))


@pytest.mark.parametrize('order', list(itertools.permutations(range(4))))
def test_union_is_order_independent(order):
    ranges = [ValueRange(-1.0, 3.0), ValueRange(-2.0, 1.0), ValueRange(0.5, 7.0), ValueRange(-0.25, 0.0)]
    observer = MinmaxObserver()
    for i in order:
        observer.record_range('t', ranges[i])
    assert observer.get_range('t') == ValueRange(-2.0, 7.0)


def test_merge_of_partial_observers_matches_single_observer():
    batches = [torch.randn(16) * (i + 1) for i in range(6)]

    single = MinmaxObserver()
    for b in batches:
        single.update('t', b)

    left, right = MinmaxObserver(), MinmaxObserver()
    for b in batches[:3]:
        left.update('t', b)
    for b in batches[3:]:
        right.update('t', b)
    right.merge(left)

    assert right.get_range('t') == single.get_range('t')


def test_update_flattens_any_shape():
    observer = MinmaxObserver()
    observer.update('t', torch.tensor([[0.5, -1.0], [2.0, 0.25]]))
    observer.update('t', np.array([[[-0.5]], [[1.5]]], dtype=np.float32))
    observer.update('t', [0.0, 1.0])
    assert observer.get_range('t') == ValueRange(-1.0, 2.0)


@pytest.mark.parametrize('empty', [[], np.array([]), torch.empty(0, 3)])
def test_update_rejects_empty_batches(empty):
    observer = MinmaxObserver()
    with pytest.raises(EmptySampleSet):
        observer.update('t', empty)
    assert 't' not in observer


def test_update_rejects_nan_samples():
    observer = MinmaxObserver()
    with pytest.raises(InvalidRange):
        observer.update('t', torch.tensor([1.0, float('nan')]))


@pytest.mark.parametrize('bounds', [
    (0.0, float('inf')), (float('-inf'), 1.0), (float('-inf'), float('inf')),
])
def test_value_range_rejects_infinite_endpoints(bounds):
    with pytest.raises(InvalidRange):
        ValueRange(*bounds)


@pytest.mark.parametrize('samples', [
    torch.tensor([0.0, float('inf')]),
    # finite in float64, overflows the float32 scan
    np.array([0.0, 1e39]),
    np.array([-1e39, 1e39]),
])
def test_update_rejects_overflowing_samples(samples):
    observer = MinmaxObserver()
    with pytest.raises(InvalidRange):
        observer.update('t', samples)
    assert 't' not in observer


def test_get_range_of_unknown_tensor():
    observer = MinmaxObserver()
    with pytest.raises(UnknownTensor):
        observer.get_range('missing')
    with pytest.raises(KeyError):
        observer.get_range('missing')


def test_update_rejects_non_numeric():
    observer = MinmaxObserver()
    with pytest.raises(TypeError):
        observer.update('t', object())
