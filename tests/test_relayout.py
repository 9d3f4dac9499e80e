# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for dlib -> caffe parameter relayout."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

import numpy as np

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dlib2caffe.errors import StructuralError
from dlib2caffe.relayout import (
    format_attribute,
    format_np_array,
    format_value,
    relayout_affine,
    relayout_con,
    relayout_fc,
    relayout_fc_no_bias,
    total_size,
)


class RelayoutTests(unittest.TestCase):
    def test_con_splits_trailing_biases(self):
        params = np.arange(8, dtype=np.float64).reshape(8, 1)
        weights, biases = relayout_con(params, num_filters=2)
        self.assertEqual(weights.role, "weights")
        np.testing.assert_array_equal(weights.values, [0, 1, 2, 3, 4, 5])
        np.testing.assert_array_equal(biases.values, [6, 7])
        self.assertEqual(weights.source_shape, (1, 6))
        self.assertEqual(total_size([weights, biases]), params.size)

    def test_con_needs_more_rows_than_filters(self):
        with self.assertRaisesRegex(StructuralError, "expected at least 4 rows"):
            relayout_con(np.ones((3, 1)), num_filters=3, layer_name="con7")

    def test_fc_transposes_weights_and_keeps_bias_row(self):
        # 3 inputs, 2 outputs, bias row last
        params = np.array([[1, 2], [3, 4], [5, 6], [7, 8]], dtype=np.float64)
        weights, biases = relayout_fc(params)
        np.testing.assert_array_equal(weights.values, [1, 3, 5, 2, 4, 6])
        self.assertEqual(weights.source_shape, (2, 3))
        np.testing.assert_array_equal(biases.values, [7, 8])

    def test_fc_no_bias_transposes_everything(self):
        params = np.array([[1, 2, 3], [4, 5, 6]], dtype=np.float64)
        (weights,) = relayout_fc_no_bias(params)
        np.testing.assert_array_equal(weights.values, [1, 4, 2, 5, 3, 6])

    def test_affine_splits_gamma_and_beta(self):
        params = np.array([[0.5], [2.0], [-1.0], [1.5]])
        gamma, beta = relayout_affine(params)
        self.assertEqual((gamma.role, beta.role), ("gamma", "beta"))
        np.testing.assert_array_equal(gamma.values, [0.5, 2.0])
        np.testing.assert_array_equal(beta.values, [-1.0, 1.5])

    def test_affine_odd_size_is_fatal(self):
        with self.assertRaises(StructuralError):
            relayout_affine(np.ones((3, 1)), layer_name="affine_con4")

    def test_empty_parameters_are_fatal(self):
        with self.assertRaises(StructuralError):
            relayout_fc_no_bias(np.zeros((0, 0)))


class FormattingTests(unittest.TestCase):
    def test_format_value_uses_significant_digits(self):
        self.assertEqual(format_value(3.0), "3")
        self.assertEqual(format_value(0.1), "0.1")
        self.assertEqual(format_value(1.0 / 3.0), "0.333333333")
        self.assertEqual(format_value(1.5e-12), "1.5e-12")
        self.assertEqual(format_value(123456789012.0), "1.23456789e+11")

    def test_format_attribute_is_exact(self):
        self.assertEqual(format_attribute(1234.0), "1234")
        self.assertEqual(format_attribute(1920), "1920")
        self.assertEqual(format_attribute(0.5), "0.5")
        self.assertEqual(format_attribute(1.0 / 3.0), repr(1.0 / 3.0))

    def test_format_value_precision(self):
        self.assertEqual(format_value(1.0 / 3.0, precision=3), "0.333")

    def test_np_array_literal_has_trailing_comma(self):
        self.assertEqual(
            format_np_array(np.array([1.0, -0.5, 2.25])),
            "np.array([1,-0.5,2.25,], dtype='float32')",
        )

    def test_empty_np_array_literal(self):
        self.assertEqual(format_np_array(np.array([])), "np.array([], dtype='float32')")


if __name__ == "__main__":
    unittest.main()
