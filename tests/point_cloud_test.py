import sys
import os
import json
import pytest
import numpy as np
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from core.point_cloud import PositionLengthMismatch, avg_abs_delta, compare_layers, compare_positions

def test_missing_or_empty_samples_give_none():
    assert avg_abs_delta([], [1, 2, 3]) is None
    assert avg_abs_delta([1, 2, 3], []) is None
    assert avg_abs_delta(None, [1]) is None
    assert avg_abs_delta([1], None) is None
    assert avg_abs_delta('abc', 'abd') is None
    assert avg_abs_delta({'x': 1}, [1]) is None

def test_mean_of_absolute_differences():
    assert avg_abs_delta([0, 0], [3, 4]) == 3.5
    assert avg_abs_delta((1.5, -2.0), [0.5, 2.0]) == 2.5

def test_zero_delta_is_not_none():
    assert avg_abs_delta([1, 2, 3], [1, 2, 3]) == 0.0

def test_length_mismatch_compares_prefix():
    delta = compare_positions([1, 2, 3, 4], [2, 3])
    assert delta.avg_abs_delta == 1.0
    assert delta.compared_length == 2
    assert delta.length_a == 4
    assert delta.length_b == 2
    assert delta.length_mismatch

def test_strict_mode_rejects_mismatch():
    with pytest.raises(PositionLengthMismatch):
        compare_positions([1, 2, 3], [1, 2], strict=True)
    assert compare_positions([1, 2], [1, 3], strict=True).avg_abs_delta == 0.5

def test_numpy_samples():
    a = np.array([0.0, 1.0, 2.0], dtype=np.float32)
    b = np.array([1.0, 1.0, 1.0])
    assert avg_abs_delta(a, b) == pytest.approx(2 / 3)

def test_nested_list_and_2d_array_agree():
    nested = [[0, 1], [2, 3]]
    assert avg_abs_delta(np.array(nested), [1, 1, 1, 1]) == 1.0
    assert avg_abs_delta(nested, [1, 1, 1, 1]) == 1.0
    assert compare_positions(np.array(nested), nested).compared_length == 4
    assert avg_abs_delta(np.float64(1.0), [1.0]) is None

def test_non_finite_values_give_none():
    delta = compare_positions([float('nan'), 1.0], [0.0, 1.0])
    assert delta.avg_abs_delta is None
    assert delta.compared_length == 2
    assert avg_abs_delta([float('inf')], [0.0]) is None
    assert json.loads(json.dumps({'d': avg_abs_delta([float('nan')], [1.0])})) == {'d': None}

def test_compare_layers():
    before = {
        'heartFill': {'totalFloats': 6, 'sampledFloats': 3, 'head': [0, 0, 0]},
        'heartEdge': {'totalFloats': 3, 'sampledFloats': 3, 'head': [1, 1, 1]},
        'sparkle': None,
    }
    after = {
        'heartFill': {'totalFloats': 6, 'sampledFloats': 3, 'head': [1, 2, 3]},
        'sparkle': {'totalFloats': 3, 'sampledFloats': 3, 'head': [1, 1, 1]},
    }
    deltas = compare_layers(before, after)
    assert set(deltas) == {'heartFill', 'heartEdge', 'sparkle'}
    assert deltas['heartFill'].avg_abs_delta == 2.0
    assert deltas['heartFill'].compared_length == 3
    assert deltas['heartEdge'].avg_abs_delta is None
    assert deltas['sparkle'].avg_abs_delta is None

def test_compare_layers_without_snapshot():
    assert compare_layers(None, None) == {}
