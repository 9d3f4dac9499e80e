# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Resolve which layer feeds each layer of a dlib network."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import StructuralError, UnsupportedLayerError
from .records import LayerGraph, LayerRecord
from .support_registry import LayerKind


@dataclass(frozen=True)
class ResolvedLayer:
    """A layer together with the caffe names of the layers it reads from."""

    position: int
    record: LayerRecord
    inputs: Tuple[str, ...]

    @property
    def name(self) -> str:
        return self.record.caffe_name


class ReferenceResolver:
    """
    Look up input layers over the forward (input first) layer order.

    While walking forward, the resolver records for every position which
    tagged layers are visible from it: tag id -> position of the most recent
    earlier layer carrying that tag. A layer that skips to tag ``t`` reads
    from that position instead of from its immediate predecessor.
    """

    def __init__(self, forward_records: Sequence[LayerRecord]):
        self.records: List[LayerRecord] = list(forward_records)
        self._visible_tags: List[Dict[int, int]] = []
        tags: Dict[int, int] = {}
        for position, record in enumerate(self.records):
            self._visible_tags.append(dict(tags))
            if record.tag_id is not None:
                tags[record.tag_id] = position

    @classmethod
    def from_graph(cls, graph: LayerGraph) -> "ReferenceResolver":
        return cls(graph.forward())

    def _check_position(self, position: int) -> None:
        if not 0 <= position < len(self.records):
            raise IndexError(f"Layer position {position} out of range.")
        if position == 0 or self.records[position].is_input:
            raise StructuralError("The input layer has no predecessor to read from.")

    def tagged_position(self, position: int, tag_id: int) -> int:
        """Return the position of the nearest layer before ``position`` tagged ``tag_id``."""
        self._check_position(position)
        found = self._visible_tags[position].get(tag_id)
        if found is None:
            raise StructuralError(
                "Network definition is bad, a layer wanted to skip back to a non-existing layer."
            )
        return found

    def input_position(self, position: int) -> int:
        """Return the position of the layer supplying the primary input of ``position``."""
        self._check_position(position)
        skip_id = self.records[position].skip_id
        if skip_id is None:
            return position - 1
        return self.tagged_position(position, skip_id)

    def input_name(self, position: int) -> str:
        return self.records[self.input_position(position)].caffe_name

    def tagged_name(self, position: int, tag_id: int) -> str:
        return self.records[self.tagged_position(position, tag_id)].caffe_name

    def resolve(self, position: int, kind: Optional[LayerKind] = None) -> ResolvedLayer:
        """Resolve every input of the layer at ``position``."""
        record = self.records[position]
        if record.is_input or record.is_loss:
            return ResolvedLayer(position, record, ())

        kind = kind or LayerKind.from_detail_name(record.detail_name)
        if kind is LayerKind.UNSUPPORTED:
            raise UnsupportedLayerError(
                f"No known transformation from dlib's {record.detail_name} layer to caffe."
            )
        inputs = [self.input_name(position)]
        if kind.num_inputs == 2:
            inputs.append(self.tagged_name(position, int(record.attribute("tag"))))
        return ResolvedLayer(position, record, tuple(inputs))


def resolve_inputs(graph: LayerGraph) -> List[ResolvedLayer]:
    """Resolve the inputs of every layer of ``graph`` in forward order."""
    resolver = ReferenceResolver.from_graph(graph)
    return [resolver.resolve(position) for position in range(len(resolver.records))]
