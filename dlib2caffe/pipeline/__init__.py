# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Conversion pipeline: parse, translate, emit."""

from .context import PipelineContext, StageTiming
from .pipeline import (
    BuildLayerSpecsPass,
    ConversionPass,
    ConversionPipeline,
    EmitCodePass,
    ParseNetworkPass,
    build_default_pipeline,
    run_default_pipeline,
)

__all__ = [
    "PipelineContext",
    "StageTiming",
    "ConversionPass",
    "ConversionPipeline",
    "ParseNetworkPass",
    "BuildLayerSpecsPass",
    "EmitCodePass",
    "build_default_pipeline",
    "run_default_pipeline",
]
