# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Convolution layer handlers."""

from __future__ import annotations

from typing import Any, Dict

from ..records import LayerRecord
from ..relayout import relayout_con
from ..support_registry import LayerKind


def handle_con(
    generator: Any,
    ctx: Any,
    layer_name: str,
    record: LayerRecord,
    spec: Dict[str, Any],
    idx: int,
) -> bool:
    """Handle dlib con layer as a caffe Convolution.

    dlib names kernel sizes by matrix dimensions: nc is the kernel width and
    nr its height.
    """
    bottoms = generator._resolve_bottoms(ctx, idx, LayerKind.CON)
    num_filters = record.attribute('num_filters')
    spec.update({
        'op': 'Convolution',
        'bottoms': bottoms,
        'params': [
            ('num_output', generator._fmt(num_filters)),
            ('kernel_w', generator._fmt(record.attribute('nc'))),
            ('kernel_h', generator._fmt(record.attribute('nr'))),
            ('stride_w', generator._fmt(record.attribute('stride_x'))),
            ('stride_h', generator._fmt(record.attribute('stride_y'))),
            ('pad_w', generator._fmt(record.attribute('padding_x'))),
            ('pad_h', generator._fmt(record.attribute('padding_y'))),
        ],
        'blobs': relayout_con(record.parameters, int(num_filters), layer_name),
    })
    ctx.specs.append(spec)
    ctx.param_layers.append(spec)
    return True
