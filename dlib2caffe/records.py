# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""In-memory representation of a parsed dlib network."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

import numpy as np

from .errors import MissingAttributeError, StructuralError


class RecordKind(str, Enum):
    """Value of the ``type`` attribute on a dlib ``<layer>`` element."""

    COMPUTATIONAL = "comp"
    LOSS = "loss"
    INPUT = "input"


def as_record_kind(value: str) -> RecordKind:
    """Convert a ``type`` attribute into a RecordKind."""
    try:
        return RecordKind(value)
    except ValueError:
        raise StructuralError(
            f"Unknown layer type '{value}', expected one of comp, loss or input."
        ) from None


def empty_parameters() -> np.ndarray:
    return np.zeros((0, 0), dtype=np.float64)


@dataclass(frozen=True, eq=False)
class LayerRecord:
    """One node of the network as written by dlib's net_to_xml()."""

    kind: RecordKind
    sequence_index: int
    detail_name: str = ""  # e.g. fc, con, max_pool, input_rgb_image
    attributes: Dict[str, float] = field(default_factory=dict)
    parameters: np.ndarray = field(default_factory=empty_parameters)
    # Set when the layer was wrapped in a tag layer, e.g. tag2<> gives tag_id == 2.
    tag_id: Optional[int] = None
    # Set when the layer draws its input from the most recent layer with
    # tag_id == skip_id instead of its immediate predecessor.
    skip_id: Optional[int] = None

    def attribute(self, key: str) -> float:
        try:
            return self.attributes[key]
        except KeyError:
            raise MissingAttributeError(
                f"Layer {self.caffe_name} doesn't have the requested attribute '{key}'."
            ) from None

    @property
    def is_input(self) -> bool:
        return self.kind == RecordKind.INPUT

    @property
    def is_loss(self) -> bool:
        return self.kind == RecordKind.LOSS

    @property
    def caffe_name(self) -> str:
        """Name of the layer in the generated caffe NetSpec."""
        if self.is_input:
            return "data"
        return f"{self.detail_name}{self.sequence_index}"


@dataclass(frozen=True)
class LayerGraph:
    """Layer records in the order dlib stores them: loss first, input last."""

    records: Sequence[LayerRecord]

    def __post_init__(self):
        if len(self.records) == 0:
            raise StructuralError("No layers found in XML file!")
        if not self.records[-1].is_input:
            raise StructuralError("The network in the XML file is missing an input layer!")
        if any(record.is_input for record in self.records[:-1]):
            raise StructuralError("The network in the XML file has more than one input layer!")

    def __len__(self) -> int:
        return len(self.records)

    @property
    def input_record(self) -> LayerRecord:
        return self.records[-1]

    def forward(self) -> List[LayerRecord]:
        """Return the records input first, in the order a forward pass visits them."""
        return list(reversed(self.records))
