# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Fully connected layer handlers."""

from __future__ import annotations

from typing import Any, Dict

from ..records import LayerRecord
from ..relayout import relayout_fc, relayout_fc_no_bias
from ..support_registry import LayerKind


def handle_fc(
    generator: Any,
    ctx: Any,
    layer_name: str,
    record: LayerRecord,
    spec: Dict[str, Any],
    idx: int,
) -> bool:
    """Handle dlib fc layer as a caffe InnerProduct with bias."""
    bottoms = generator._resolve_bottoms(ctx, idx, LayerKind.FC)
    spec.update({
        'op': 'InnerProduct',
        'bottoms': bottoms,
        'params': [
            ('num_output', generator._fmt(record.attribute('num_outputs'))),
            ('bias_term', 'True'),
        ],
        'blobs': relayout_fc(record.parameters, layer_name),
    })
    ctx.specs.append(spec)
    ctx.param_layers.append(spec)
    return True


def handle_fc_no_bias(
    generator: Any,
    ctx: Any,
    layer_name: str,
    record: LayerRecord,
    spec: Dict[str, Any],
    idx: int,
) -> bool:
    """Handle dlib fc_no_bias layer as a caffe InnerProduct without bias."""
    bottoms = generator._resolve_bottoms(ctx, idx, LayerKind.FC_NO_BIAS)
    spec.update({
        'op': 'InnerProduct',
        'bottoms': bottoms,
        'params': [
            ('num_output', generator._fmt(record.attribute('num_outputs'))),
            ('bias_term', 'False'),
        ],
        'blobs': relayout_fc_no_bias(record.parameters, layer_name),
    })
    ctx.specs.append(spec)
    ctx.param_layers.append(spec)
    return True
