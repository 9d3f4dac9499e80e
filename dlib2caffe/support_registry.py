# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Shared metadata about which dlib layers can be converted to caffe."""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Sequence, Tuple


class LayerKind(str, Enum):
    """dlib computational layer detail names known to the converter."""

    CON = "con"
    RELU = "relu"
    MAX_POOL = "max_pool"
    AVG_POOL = "avg_pool"
    FC = "fc"
    FC_NO_BIAS = "fc_no_bias"
    BN_CON = "bn_con"
    BN_FC = "bn_fc"
    AFFINE_CON = "affine_con"
    AFFINE_FC = "affine_fc"
    ADD_PREV = "add_prev"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_detail_name(cls, name: str) -> "LayerKind":
        """Map a detail element name to its LayerKind, UNSUPPORTED if unknown."""
        for member in cls:
            if member is not cls.UNSUPPORTED and member.value == name:
                return member
        return cls.UNSUPPORTED

    @property
    def num_inputs(self) -> int:
        """Number of layers feeding this one."""
        return 2 if self is LayerKind.ADD_PREV else 1


class InputKind(str, Enum):
    """dlib input layer detail names known to the converter."""

    RGB_IMAGE_SIZED = "input_rgb_image_sized"
    RGB_IMAGE = "input_rgb_image"
    GRAYSCALE = "input"


# Only these detail elements carry a parameter tensor as their text.
PARAMETER_BEARING_DETAIL_NAMES: FrozenSet[str] = frozenset({
    "fc",
    "fc_no_bias",
    "con",
    "affine_con",
    "affine_fc",
    "affine",
    "prelu",
})


# Mapping from dlib detail name to the caffe layer it becomes.
CAFFE_TYPE_MAPPING: Dict[LayerKind, str] = {
    LayerKind.CON: "Convolution",
    LayerKind.RELU: "ReLU",
    LayerKind.MAX_POOL: "Pooling",
    LayerKind.AVG_POOL: "Pooling",
    LayerKind.FC: "InnerProduct",
    LayerKind.FC_NO_BIAS: "InnerProduct",
    LayerKind.AFFINE_CON: "Scale",
    LayerKind.AFFINE_FC: "Scale",
    LayerKind.ADD_PREV: "Eltwise",
}


# Input layers: (channels, whether rows/columns come from the layer attributes).
INPUT_LAYOUTS: Dict[InputKind, Tuple[int, bool]] = {
    InputKind.RGB_IMAGE_SIZED: (3, True),
    InputKind.RGB_IMAGE: (3, False),
    InputKind.GRAYSCALE: (1, False),
}


# Migration advice for layers the converter refuses.
REPLACEMENT_SUGGESTIONS: Dict[str, str] = {
    "bn_con": "Put the network into test mode first by switching batch norm layers to affine layers.",
    "bn_fc": "Put the network into test mode first by switching batch norm layers to affine layers.",
    "max_pool": "dlib and caffe pad pooling windows differently. Use zero padding.",
    "avg_pool": "dlib and caffe pad pooling windows differently. Use zero padding.",
    "prelu": "Use relu, caffe's PReLU layer is not mapped yet.",
    "affine": "Use affine_con or affine_fc so the scale axis is known.",
    "dropout": "Dropout is a no-op at inference time. Switch it to a multiply layer or remove it.",
}


def get_supported_detail_names() -> Sequence[str]:
    """Return detail names of computational layers the converter can translate."""
    return tuple(kind.value for kind in CAFFE_TYPE_MAPPING)


def get_input_detail_names() -> Sequence[str]:
    """Return detail names of the recognised input layers."""
    return tuple(kind.value for kind in InputKind)


def get_parameter_bearing_detail_names() -> FrozenSet[str]:
    return PARAMETER_BEARING_DETAIL_NAMES


def get_caffe_type_mapping() -> Dict[LayerKind, str]:
    return CAFFE_TYPE_MAPPING


def get_replacement_suggestions() -> Dict[str, str]:
    """Return mapping from refused detail name to migration advice."""
    return REPLACEMENT_SUGGESTIONS
