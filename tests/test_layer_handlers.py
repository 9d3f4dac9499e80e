# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for per layer dlib -> caffe translation."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

import numpy as np

REPO_ROOT = Path(__file__).resolve().parents[1]
TESTS_ROOT = REPO_ROOT / "tests"
for path in (REPO_ROOT, TESTS_ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from dlib2caffe.errors import MissingAttributeError, UnsupportedLayerError
from dlib2caffe.generate_caffe_code import CaffeCodeGenerator
from dlib2caffe.layers import LAYER_HANDLERS
from dlib2caffe.resolver import ReferenceResolver
from dlib2caffe.support_registry import CAFFE_TYPE_MAPPING, LayerKind
from network_fixtures import column_text, graph_from_xml, layer, network_xml

POOL_ATTRS = {"nr": 2, "nc": 2, "stride_y": 2, "stride_x": 2, "padding_y": 0, "padding_x": 0}


def _single_layer_specs(*elements: str):
    """Translate a network of ``elements`` followed by a grayscale input layer."""
    generator = CaffeCodeGenerator("net.xml")
    generator.graph = graph_from_xml(network_xml(*elements, layer(99, "input", "input")))
    generator.resolver = ReferenceResolver.from_graph(generator.graph)
    generator.build_layer_specs()
    return generator


class LayerHandlerRegistryTests(unittest.TestCase):
    def test_every_known_kind_has_a_handler(self):
        expected = {kind for kind in LayerKind if kind is not LayerKind.UNSUPPORTED}
        self.assertEqual(set(LAYER_HANDLERS), expected)

    def test_every_translated_kind_has_a_caffe_type(self):
        refused = {LayerKind.BN_CON, LayerKind.BN_FC, LayerKind.UNSUPPORTED}
        self.assertEqual(set(CAFFE_TYPE_MAPPING), set(LayerKind) - refused)


class LayerHandlerTests(unittest.TestCase):
    def test_max_pool(self):
        generator = _single_layer_specs(layer(0, "comp", "max_pool", POOL_ATTRS))
        (spec,) = generator.layer_specs
        self.assertEqual(spec["op"], "Pooling")
        self.assertEqual(
            generator.format_layer_call(spec),
            "n.data, pool=P.Pooling.MAX, kernel_w=2, kernel_h=2, stride_w=2, stride_h=2, pad_w=0, pad_h=0",
        )
        self.assertEqual(generator.param_layers, [])

    def test_avg_pool_with_zero_window_is_global(self):
        attrs = dict(POOL_ATTRS, nr=0, nc=0, stride_y=1, stride_x=1)
        generator = _single_layer_specs(layer(0, "comp", "avg_pool", attrs))
        (spec,) = generator.layer_specs
        self.assertEqual(
            generator.format_layer_call(spec),
            "n.data, pool=P.Pooling.AVE, global_pooling=True, stride_w=1, stride_h=1, pad_w=0, pad_h=0",
        )

    def test_pooling_with_padding_is_rejected(self):
        attrs = dict(POOL_ATTRS, padding_x=1)
        with self.assertRaisesRegex(UnsupportedLayerError, "non-zero padding"):
            _single_layer_specs(layer(0, "comp", "max_pool", attrs))

    def test_fc_with_bias(self):
        params = [[1.0, 2.0], [3.0, 4.0], [0.1, 0.2]]
        text = "\n" + "\n".join(" ".join(str(v) for v in row) for row in params) + "\n"
        generator = _single_layer_specs(layer(0, "comp", "fc", {"num_outputs": 2}, text))
        (spec,) = generator.layer_specs
        self.assertEqual(generator.format_layer_call(spec), "n.data, num_output=2, bias_term=True")
        self.assertEqual([blob.role for blob in spec["blobs"]], ["weights", "biases"])
        self.assertEqual(generator.param_layers, [spec])

    def test_affine_con_and_affine_fc_scale_axes(self):
        params = column_text([1.0, 2.0, 0.0, -1.0])
        generator = _single_layer_specs(
            layer(0, "comp", "affine_fc", {}, params),
            layer(1, "comp", "affine_con", {}, params),
        )
        con_spec, fc_spec = generator.layer_specs
        self.assertEqual(generator.format_layer_call(con_spec), "n.data, axis=1, bias_term=True")
        self.assertEqual(generator.format_layer_call(fc_spec), "n.affine_con1, axis=3, bias_term=True")
        np.testing.assert_array_equal(con_spec["blobs"][0].values, [1.0, 2.0])
        np.testing.assert_array_equal(con_spec["blobs"][1].values, [0.0, -1.0])

    def test_relu_has_no_parameters(self):
        generator = _single_layer_specs(layer(0, "comp", "relu"))
        (spec,) = generator.layer_specs
        self.assertEqual(spec["op"], "ReLU")
        self.assertEqual(spec["params"], [])
        self.assertEqual(generator.param_layers, [])

    def test_batch_norm_is_rejected(self):
        for detail in ("bn_con", "bn_fc"):
            with self.subTest(detail=detail):
                with self.assertRaisesRegex(UnsupportedLayerError, "'test mode'"):
                    _single_layer_specs(layer(0, "comp", detail, {}, column_text([1.0, 2.0])))

    def test_unknown_layer_is_rejected(self):
        with self.assertRaisesRegex(UnsupportedLayerError, "No known transformation from dlib's mult_prev layer"):
            _single_layer_specs(layer(0, "comp", "mult_prev", {"tag": 1}))

    def test_missing_attribute_names_layer_and_key(self):
        attrs = dict(POOL_ATTRS)
        del attrs["stride_x"]
        with self.assertRaisesRegex(MissingAttributeError, "max_pool0 doesn't have the requested attribute 'stride_x'"):
            _single_layer_specs(layer(0, "comp", "max_pool", attrs))

    def test_fc_no_bias(self):
        generator = _single_layer_specs(layer(0, "comp", "fc_no_bias", {"num_outputs": 1}, column_text([1, 2, 3])))
        (spec,) = generator.layer_specs
        self.assertEqual(generator.format_layer_call(spec), "n.data, num_output=1, bias_term=False")
        self.assertEqual(len(spec["blobs"]), 1)


if __name__ == "__main__":
    unittest.main()
