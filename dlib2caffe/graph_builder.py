# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Rebuild a dlib network from the XML written by dlib::net_to_xml().

The document lists layers output first, for example::

    <net>
      <layer idx="0" type="loss"><loss_multiclass_log/></layer>
      <layer idx="1" type="comp"><fc num_outputs="10">...</fc></layer>
      <layer type="skip" id="1"/>
      <layer idx="2" type="comp"><relu/></layer>
      <layer type="tag" id="1"/>
      <layer idx="3" type="input"><input_rgb_image/></layer>
    </net>

``tag`` and ``skip`` entries are annotations rather than layers: a tag names
the layer that follows it, a skip makes the layer before it read its input
from the most recent tagged layer instead of its immediate predecessor.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from .errors import StructuralError
from .records import LayerGraph, LayerRecord, as_record_kind, empty_parameters
from .support_registry import get_parameter_bearing_detail_names
from .xml_events import Characters, EndElement, StartElement, XmlEvent, iter_xml_events

logger = logging.getLogger(__name__)

ROOT_TAG = "net"
LAYER_TAG = "layer"
TAG_MARKER = "tag"
SKIP_MARKER = "skip"


def _as_int(value: Optional[str], what: str) -> int:
    if value is None:
        raise StructuralError(f"Missing '{what}' attribute on a layer element.")
    try:
        return int(value)
    except ValueError:
        raise StructuralError(f"Expected an integer for '{what}', got '{value}'.") from None


def _as_float(value: str, key: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise StructuralError(f"Expected a number for attribute '{key}', got '{value}'.") from None


def parse_parameter_matrix(text: str) -> np.ndarray:
    """
    Parse a dlib matrix written as text: one row per line, whitespace separated.

    Returns a float64 array of shape [rows, cols], or an empty [0, 0] array
    when the text holds no numbers.
    """
    rows: List[List[float]] = []
    for line in text.splitlines():
        tokens = line.split()
        if not tokens:
            continue
        try:
            rows.append([float(token) for token in tokens])
        except ValueError:
            raise StructuralError(f"Non-numeric value in parameter matrix row: '{line.strip()}'") from None

    if not rows:
        return empty_parameters()

    num_cols = len(rows[0])
    for row_idx, row in enumerate(rows):
        if len(row) != num_cols:
            raise StructuralError(
                f"Parameter matrix row {row_idx} has {len(row)} values, expected {num_cols}."
            )
    return np.asarray(rows, dtype=np.float64)


class GraphBuilder:
    """
    Event handler that collects layer records from a dlib XML document.

    Feed it events with start_element/characters/end_element (or all at
    once with feed()), then call finish() to get the LayerGraph.
    """

    def __init__(self):
        self.layers: List[LayerRecord] = []
        self._seen_root = False
        self._element_stack: List[str] = []
        self._pending_tag_id: Optional[int] = None
        # Fields of the layer under construction; None while inside a tag/skip marker.
        self._next_layer: Optional[Dict[str, Any]] = None

    def start_element(self, name: str, attributes: Dict[str, str]) -> None:
        if not self._seen_root:
            if name != ROOT_TAG:
                raise StructuralError("The top level XML tag must be a 'net' tag.")
            self._seen_root = True

        if name == LAYER_TAG:
            self._start_layer(attributes)
        elif self._element_stack and self._element_stack[-1] == LAYER_TAG and self._next_layer is not None:
            self._next_layer["detail_name"] = name
            self._next_layer["attributes"] = {
                key: _as_float(value, key) for key, value in attributes.items()
            }

        self._element_stack.append(name)

    def _start_layer(self, attributes: Dict[str, str]) -> None:
        self._next_layer = None
        layer_type = attributes.get("type", "")

        if layer_type == SKIP_MARKER:
            if not self.layers:
                raise StructuralError(
                    "A skip layer was found as the first layer, but the first layer should be an input layer."
                )
            skip_id = _as_int(attributes.get("id"), "id")
            previous = self.layers[-1]
            self.layers[-1] = replace(previous, skip_id=skip_id)
            logger.debug("Layer %s skips to tag %d", previous.caffe_name, skip_id)
        elif layer_type == TAG_MARKER:
            self._pending_tag_id = _as_int(attributes.get("id"), "id")
        else:
            self._next_layer = {
                "kind": as_record_kind(layer_type),
                "sequence_index": _as_int(attributes.get("idx"), "idx"),
                "tag_id": self._pending_tag_id,
            }
            self._pending_tag_id = None

    def characters(self, data: str) -> None:
        if not self._element_stack or self._next_layer is None:
            return
        if self._element_stack[-1] in get_parameter_bearing_detail_names():
            self._next_layer["parameters"] = parse_parameter_matrix(data)

    def end_element(self, name: str) -> None:
        self._element_stack.pop()
        if name == LAYER_TAG and self._next_layer is not None:
            self.layers.append(LayerRecord(**self._next_layer))
            self._next_layer = None

    def feed(self, events: Iterable[XmlEvent]) -> "GraphBuilder":
        for event in events:
            if isinstance(event, StartElement):
                self.start_element(event.name, event.attributes)
            elif isinstance(event, Characters):
                self.characters(event.data)
            elif isinstance(event, EndElement):
                self.end_element(event.name)
        return self

    def finish(self) -> LayerGraph:
        """Check the collected layers and return them as a LayerGraph."""
        return LayerGraph(tuple(self.layers))


def build_layer_graph(events: Iterable[XmlEvent]) -> LayerGraph:
    """Build a LayerGraph from a stream of XML events."""
    return GraphBuilder().feed(events).finish()


def parse_dlib_xml(source) -> LayerGraph:
    """Parse an XML file written by dlib::net_to_xml() into a LayerGraph."""
    graph = build_layer_graph(iter_xml_events(source))
    logger.info("Parsed %d layers from %s", len(graph), source)
    return graph
