# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Convert dlib networks saved with net_to_xml() into caffe models."""

from .config import ConverterConfig, load_config
from .errors import (
    ConfigurationError,
    ConversionError,
    MissingAttributeError,
    OutputWriteError,
    StructuralError,
    UnsupportedLayerError,
)
from .generate_caffe_code import CaffeCodeGenerator, convert_dlib_xml_to_caffe_python_code
from .graph_builder import GraphBuilder, build_layer_graph, parse_dlib_xml
from .records import LayerGraph, LayerRecord, RecordKind
from .resolver import ReferenceResolver, ResolvedLayer, resolve_inputs
from .support_registry import LayerKind

__version__ = "0.1.0"

__all__ = [
    "CaffeCodeGenerator",
    "ConfigurationError",
    "ConversionError",
    "ConverterConfig",
    "GraphBuilder",
    "LayerGraph",
    "LayerKind",
    "LayerRecord",
    "MissingAttributeError",
    "OutputWriteError",
    "RecordKind",
    "ReferenceResolver",
    "ResolvedLayer",
    "StructuralError",
    "UnsupportedLayerError",
    "build_layer_graph",
    "convert_dlib_xml_to_caffe_python_code",
    "load_config",
    "parse_dlib_xml",
    "resolve_inputs",
]
