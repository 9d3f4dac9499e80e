# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for input resolution over the forward layer order."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
TESTS_ROOT = REPO_ROOT / "tests"
for path in (REPO_ROOT, TESTS_ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from dlib2caffe.errors import MissingAttributeError, StructuralError, UnsupportedLayerError
from dlib2caffe.resolver import ReferenceResolver, resolve_inputs
from dlib2caffe.support_registry import LayerKind
from network_fixtures import graph_from_xml, layer, network_xml, residual_xml, simple_cnn_xml, skip, tag


def _resolver(xml: str) -> ReferenceResolver:
    return ReferenceResolver.from_graph(graph_from_xml(xml))


class ReferenceResolverTests(unittest.TestCase):
    def test_forward_order_starts_at_input(self):
        resolver = _resolver(simple_cnn_xml())
        self.assertEqual(
            [r.caffe_name for r in resolver.records],
            ["data", "con3", "relu2", "fc_no_bias1", "loss_multiclass_log0"],
        )

    def test_chain_reads_from_predecessor(self):
        resolved = resolve_inputs(graph_from_xml(simple_cnn_xml()))
        self.assertEqual([r.inputs for r in resolved], [(), ("data",), ("con3",), ("relu2",), ()])

    def test_add_prev_reads_predecessor_then_tagged_layer(self):
        resolver = _resolver(residual_xml())
        position = [r.caffe_name for r in resolver.records].index("add_prev2")
        resolved = resolver.resolve(position)
        self.assertEqual(resolved.name, "add_prev2")
        self.assertEqual(resolved.inputs, ("relu3", "data"))

    def test_add_prev_with_unknown_tag_is_fatal(self):
        resolver = _resolver(residual_xml(add_tag=7))
        position = [r.caffe_name for r in resolver.records].index("add_prev2")
        with self.assertRaisesRegex(StructuralError, "non-existing layer"):
            resolver.resolve(position)

    def test_add_prev_without_tag_attribute_is_fatal(self):
        xml = network_xml(
            layer(0, "comp", "add_prev"),
            layer(1, "comp", "relu"),
            layer(2, "input", "input"),
        )
        resolver = _resolver(xml)
        with self.assertRaisesRegex(MissingAttributeError, "add_prev0 doesn't have the requested attribute 'tag'"):
            resolver.resolve(2)

    def test_skip_reads_from_tagged_layer(self):
        xml = network_xml(
            layer(0, "comp", "relu"),
            skip(5),
            layer(1, "comp", "relu"),
            tag(5),
            layer(2, "input", "input"),
        )
        resolver = _resolver(xml)
        self.assertEqual(resolver.input_name(1), "data")
        self.assertEqual(resolver.input_name(2), "data")

    def test_nearest_earlier_tag_wins(self):
        xml = network_xml(
            layer(0, "comp", "add_prev", {"tag": 1}),
            tag(1),
            layer(1, "comp", "relu"),
            layer(2, "comp", "relu"),
            tag(1),
            layer(3, "input", "input"),
        )
        resolver = _resolver(xml)
        self.assertEqual(resolver.resolve(3).inputs, ("relu1", "relu1"))

    def test_tag_on_later_layer_is_not_visible(self):
        xml = network_xml(
            tag(4),
            layer(0, "comp", "relu"),
            layer(1, "comp", "relu"),
            skip(4),
            layer(2, "input", "input"),
        )
        # the skip marker applies to relu1, whose only tagged candidate comes after it
        resolver = _resolver(xml)
        with self.assertRaises(StructuralError):
            resolver.input_position(1)

    def test_input_layer_has_no_predecessor(self):
        resolver = _resolver(simple_cnn_xml())
        with self.assertRaises(StructuralError):
            resolver.input_position(0)
        self.assertEqual(resolver.resolve(0).inputs, ())

    def test_unsupported_layer_is_rejected_before_resolution(self):
        xml = network_xml(layer(0, "comp", "dropout"), layer(1, "input", "input"))
        resolver = _resolver(xml)
        with self.assertRaisesRegex(UnsupportedLayerError, "No known transformation from dlib's dropout layer"):
            resolver.resolve(1)

    def test_explicit_kind_is_used(self):
        resolver = _resolver(simple_cnn_xml())
        self.assertEqual(resolver.resolve(2, LayerKind.RELU).inputs, ("con3",))


if __name__ == "__main__":
    unittest.main()
