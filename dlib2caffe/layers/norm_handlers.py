# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Normalization layer handlers (affine and batch norm)."""

from __future__ import annotations

from typing import Any, Dict

from ..errors import UnsupportedLayerError
from ..records import LayerRecord
from ..relayout import relayout_affine
from ..support_registry import LayerKind


def handle_batch_norm(
    generator: Any,
    ctx: Any,
    layer_name: str,
    record: LayerRecord,
    spec: Dict[str, Any],
    idx: int,
) -> bool:
    """Reject bn_con/bn_fc layers, which only exist in training mode."""
    raise UnsupportedLayerError(
        "Conversion from dlib's batch norm layers to caffe's isn't supported.  Instead, "
        "you should put your network into 'test mode' by switching batch norm layers to affine layers."
    )


def _handle_affine(
    generator: Any,
    ctx: Any,
    layer_name: str,
    record: LayerRecord,
    spec: Dict[str, Any],
    idx: int,
    kind: LayerKind,
    axis: int,
) -> bool:
    bottoms = generator._resolve_bottoms(ctx, idx, kind)
    spec.update({
        'op': 'Scale',
        'bottoms': bottoms,
        'params': [
            ('axis', str(axis)),
            ('bias_term', 'True'),
        ],
        'blobs': relayout_affine(record.parameters, layer_name),
    })
    ctx.specs.append(spec)
    ctx.param_layers.append(spec)
    return True


def handle_affine_con(
    generator: Any,
    ctx: Any,
    layer_name: str,
    record: LayerRecord,
    spec: Dict[str, Any],
    idx: int,
) -> bool:
    """Handle dlib affine_con layer as a per-channel caffe Scale."""
    return _handle_affine(generator, ctx, layer_name, record, spec, idx, LayerKind.AFFINE_CON, axis=1)


def handle_affine_fc(
    generator: Any,
    ctx: Any,
    layer_name: str,
    record: LayerRecord,
    spec: Dict[str, Any],
    idx: int,
) -> bool:
    """Handle dlib affine_fc layer as a caffe Scale over the last axis."""
    return _handle_affine(generator, ctx, layer_name, record, spec, idx, LayerKind.AFFINE_FC, axis=3)
