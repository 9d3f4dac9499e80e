# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Elementwise layer handlers."""

from __future__ import annotations

from typing import Any, Dict

from ..records import LayerRecord
from ..support_registry import LayerKind


def handle_add_prev(
    generator: Any,
    ctx: Any,
    layer_name: str,
    record: LayerRecord,
    spec: Dict[str, Any],
    idx: int,
) -> bool:
    """Handle dlib add_prev layer as a caffe Eltwise SUM.

    The first bottom is the layer's own input, the second the most recent
    layer tagged with the ``tag`` attribute (the residual shortcut).
    """
    spec.update({
        'op': 'Eltwise',
        'bottoms': generator._resolve_bottoms(ctx, idx, LayerKind.ADD_PREV),
        'params': [('operation', 'P.Eltwise.SUM')],
        'blobs': [],
    })
    ctx.specs.append(spec)
    return True
