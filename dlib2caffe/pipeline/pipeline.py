# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Conversion passes and the runner that executes them in order."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Iterable

from .context import PipelineContext

logger = logging.getLogger(__name__)


class ConversionPass(ABC):
    """One step of a dlib -> caffe conversion."""

    name = "unnamed_pass"

    @abstractmethod
    def run(self, context: PipelineContext) -> None:
        """Advance the conversion held by ``context.generator``."""


class ConversionPipeline:
    """Run passes in order, timing each one. The first exception stops the run."""

    def __init__(self, passes: Iterable[ConversionPass]):
        self.passes = list(passes)

    def run(self, context: PipelineContext) -> PipelineContext:
        logger.info("[dlib2caffe] Converting %s", context.generator.xml_path)
        for conversion_pass in self.passes:
            start_s = time.perf_counter()
            conversion_pass.run(context)
            elapsed_s = time.perf_counter() - start_s
            context.add_timing(conversion_pass.name, elapsed_s)
            logger.info("  [dlib2caffe] %s: %.3fs", conversion_pass.name, elapsed_s)
        logger.info("[dlib2caffe] Done in %.3fs", context.total_elapsed_s)
        return context


class ParseNetworkPass(ConversionPass):
    """Read the dlib XML into a LayerGraph and set up input resolution."""

    name = "parse_network"

    def run(self, context: PipelineContext) -> None:
        generator = context.generator
        generator.load_network()
        context.diagnostics["layer_count"] = len(generator.graph)


class BuildLayerSpecsPass(ConversionPass):
    """Input dimensions first, then one caffe layer spec per computational layer."""

    name = "build_layer_specs"

    def run(self, context: PipelineContext) -> None:
        generator = context.generator
        generator.build_input_dims()
        generator.build_layer_specs()
        context.diagnostics["input_size_defaulted"] = generator.input_dims["defaulted"]
        context.diagnostics["layer_specs_count"] = len(generator.layer_specs)
        context.diagnostics["param_layers_count"] = len(generator.param_layers)


class EmitCodePass(ConversionPass):
    """Render the caffe script into memory; nothing is written here."""

    name = "emit_code"

    def run(self, context: PipelineContext) -> None:
        generator = context.generator
        generator.generate_source()
        context.diagnostics["source_bytes"] = len(generator.source.encode("utf-8"))


def build_default_pipeline() -> ConversionPipeline:
    return ConversionPipeline([ParseNetworkPass(), BuildLayerSpecsPass(), EmitCodePass()])


def run_default_pipeline(generator) -> PipelineContext:
    """Convert the network of ``generator`` with the default passes."""
    return build_default_pipeline().run(PipelineContext(generator=generator))
