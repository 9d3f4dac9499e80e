# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Caffe code generator for dlib networks

Turns the XML written by dlib::net_to_xml() into a python script that builds
the equivalent caffe network and loads the dlib weights into it, using Mako
templates.

Usage:
    python -m dlib2caffe my_net.xml

Outputs (next to the input unless output_dir is set):
    my_net_dlib_to_caffe_model.py
        make_netspec()          # caffe NetSpec of the network
        set_network_weights()   # copies the dlib parameters into a caffe.Net
        save_as_caffe_model()   # writes the .prototxt and .caffemodel
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from mako.lookup import TemplateLookup

from .config import ConverterConfig
from .errors import OutputWriteError, UnsupportedLayerError
from .graph_builder import parse_dlib_xml
from .layers import LAYER_HANDLERS
from .pipeline import PipelineContext, run_default_pipeline
from .records import LayerGraph
from .relayout import format_attribute, format_np_array
from .resolver import ReferenceResolver
from .support_registry import INPUT_LAYOUTS, InputKind, LayerKind

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
MAIN_TEMPLATE = "caffe_model.py.mako"


@dataclass
class LayerBuildContext:
    """
    Mutable state passed through layer spec building.

    Layer handlers read input names from the resolver and append the specs
    they produce.
    """
    resolver: ReferenceResolver

    # Results, in forward order
    specs: List[dict] = field(default_factory=list)
    param_layers: List[dict] = field(default_factory=list)


def output_path_for(xml_path: Union[str, Path], config: ConverterConfig) -> Path:
    """Return where the generated script for ``xml_path`` goes.

    The file name is cut at its first '.' and the configured suffix appended,
    so ``nets/resnet.v2.xml`` becomes ``nets/resnet_dlib_to_caffe_model.py``.
    """
    xml_path = Path(xml_path)
    stem = xml_path.name.split(".", 1)[0]
    directory = Path(config.output_dir) if config.output_dir is not None else xml_path.parent
    return directory / f"{stem}{config.output_suffix}"


class CaffeCodeGenerator:
    """
    Converts one dlib XML network into a caffe python script.

    Work is split into passes run by ``dlib2caffe.pipeline``:

    1. **parse_network**: the XML becomes a LayerGraph (stored output first,
       input last) and a ReferenceResolver over the forward order.
    2. **build_layer_specs**: input dimensions are derived from the input
       layer, then each computational layer is dispatched on its LayerKind
       to a handler in ``dlib2caffe.layers`` that builds a caffe layer spec
       (type, bottoms, keyword arguments, relayout parameter blobs). Loss
       and input layers are skipped.
    3. **emit_code**: the specs are rendered through the Mako templates into
       ``self.source``.

    Nothing touches the file system until ``write()``, so a failing network
    leaves no partial output behind.
    """

    def __init__(self, xml_path: Union[str, Path], config: Optional[ConverterConfig] = None):
        self.xml_path = Path(xml_path)
        self.config = config or ConverterConfig()
        self.template_dir = TEMPLATE_DIR
        self.output_path = output_path_for(self.xml_path, self.config)

        self.graph: Optional[LayerGraph] = None
        self.resolver: Optional[ReferenceResolver] = None
        self.input_dims: Dict[str, Any] = {}
        self.layer_specs: List[dict] = []
        self.param_layers: List[dict] = []
        self.source: Optional[str] = None

    # ------------------------------------------------------------------
    # Pass entry points
    # ------------------------------------------------------------------

    def load_network(self) -> LayerGraph:
        self.graph = parse_dlib_xml(self.xml_path)
        self.resolver = ReferenceResolver.from_graph(self.graph)
        return self.graph

    def build_input_dims(self) -> Dict[str, Any]:
        """Derive the caffe input blob dimensions from the dlib input layer."""
        record = self.graph.input_record
        try:
            input_kind = InputKind(record.detail_name)
        except ValueError:
            raise UnsupportedLayerError(
                f"No known transformation from dlib's {record.detail_name} layer to caffe."
            ) from None

        channels, sized = INPUT_LAYOUTS[input_kind]
        comment = ''
        if sized:
            nr = self._fmt(record.attribute('nr'))
            nc = self._fmt(record.attribute('nc'))
        else:
            nr = nc = str(self.config.default_input_size)
            comment = (
                f" #WARNING, the source dlib network didn't commit to a specific input size, "
                f"so we put {nr} here as a default."
            )
            logger.warning(
                "%s: input layer %s has no fixed size, defaulting to %sx%s",
                self.xml_path, record.detail_name, nr, nc,
            )
        self.input_dims = {
            'nr': nr,
            'nc': nc,
            'k': str(channels),
            'defaulted': not sized,
            'comment': comment,
        }
        return self.input_dims

    def build_layer_specs(self) -> List[dict]:
        """Translate the computational layers in forward order."""
        ctx = LayerBuildContext(resolver=self.resolver)
        for idx, record in enumerate(self.resolver.records):
            if record.is_loss or record.is_input:
                continue

            kind = LayerKind.from_detail_name(record.detail_name)
            handler = LAYER_HANDLERS.get(kind)
            if handler is None:
                raise UnsupportedLayerError(
                    f"No known transformation from dlib's {record.detail_name} layer to caffe."
                )

            layer_name = record.caffe_name
            spec = {'name': layer_name, 'kind': kind.value}
            handler(self, ctx, layer_name, record, spec, idx)
            logger.debug("%s -> L.%s(%s)", layer_name, spec['op'], ", ".join(spec['bottoms']))
            for blob in spec['blobs']:
                logger.debug("  %s %s: %d values from %s", layer_name, blob.role, blob.size, blob.source_shape)

        self.layer_specs = ctx.specs
        self.param_layers = ctx.param_layers
        return self.layer_specs

    def generate_source(self) -> str:
        self.source = self.render_template(MAIN_TEMPLATE)
        return self.source

    # ------------------------------------------------------------------
    # Helpers used by layer handlers and templates
    # ------------------------------------------------------------------

    def _resolve_bottoms(self, ctx: LayerBuildContext, idx: int, kind: LayerKind) -> List[str]:
        return list(ctx.resolver.resolve(idx, kind).inputs)

    def _fmt(self, value: float) -> str:
        return format_attribute(value)

    def format_layer_call(self, spec: Dict[str, Any]) -> str:
        """Arguments of the ``L.<op>(...)`` call for a layer spec."""
        args = [f"n.{bottom}" for bottom in spec['bottoms']]
        args.extend(f"{key}={value}" for key, value in spec['params'])
        return ", ".join(args)

    def format_blob(self, blob) -> str:
        return format_np_array(blob.values, self.config.precision)

    def render_template(self, template_name: str, **kwargs) -> str:
        """Render a Mako template to a string."""
        # Use a TemplateLookup so templates can include partials (e.g. `partials/*.mako`)
        lookup = TemplateLookup(
            directories=[str(self.template_dir)],
            input_encoding='utf-8',
        )
        template = lookup.get_template(template_name)

        kwargs.update({
            'source_name': self.xml_path.name,
            'batch_size': self.config.batch_size,
            'input_dims': self.input_dims,
            'layer_specs': self.layer_specs,
            'param_layers': self.param_layers,
            'format_layer_call': self.format_layer_call,
            'format_blob': self.format_blob,
        })
        return template.render(**kwargs)

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def generate(self) -> PipelineContext:
        """Run every conversion pass; the result is kept in ``self.source``."""
        return run_default_pipeline(self)

    def write(self) -> Path:
        if self.source is None:
            raise RuntimeError("generate() must run before write().")
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self.output_path.write_text(self.source, encoding="utf-8")
        except OSError as exc:
            raise OutputWriteError(f"Unable to write {self.output_path}: {exc}") from exc
        return self.output_path


def convert_dlib_xml_to_caffe_python_code(
    xml_path: Union[str, Path],
    config: Optional[ConverterConfig] = None,
) -> Path:
    """Convert one dlib XML file and write the generated caffe script.

    Returns the path of the written script. Raises ConversionError (and writes
    nothing) if the network can't be converted.
    """
    generator = CaffeCodeGenerator(xml_path, config)
    print(f"Writing model to {generator.output_path}")
    generator.generate()
    return generator.write()
