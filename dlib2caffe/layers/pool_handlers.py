# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Pool layer handlers."""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from ..errors import UnsupportedLayerError
from ..records import LayerRecord
from ..support_registry import LayerKind


def _pooling_params(generator: Any, record: LayerRecord, pool: str) -> List[Tuple[str, str]]:
    """Build Pooling keyword arguments shared by max and average pooling."""
    params = [('pool', pool)]
    # A zero sized window is dlib's way of pooling over the whole image.
    if record.attribute('nc') == 0:
        params.append(('global_pooling', 'True'))
    else:
        params.append(('kernel_w', generator._fmt(record.attribute('nc'))))
        params.append(('kernel_h', generator._fmt(record.attribute('nr'))))

    if record.attribute('padding_x') != 0 or record.attribute('padding_y') != 0:
        raise UnsupportedLayerError(
            "dlib and caffe implement pooling with non-zero padding differently, so you can't convert a "
            "network with such pooling layers."
        )

    params.extend([
        ('stride_w', generator._fmt(record.attribute('stride_x'))),
        ('stride_h', generator._fmt(record.attribute('stride_y'))),
        ('pad_w', generator._fmt(record.attribute('padding_x'))),
        ('pad_h', generator._fmt(record.attribute('padding_y'))),
    ])
    return params


def handle_max_pool(
    generator: Any,
    ctx: Any,
    layer_name: str,
    record: LayerRecord,
    spec: Dict[str, Any],
    idx: int,
) -> bool:
    """Handle dlib max_pool layer as a caffe MAX Pooling."""
    bottoms = generator._resolve_bottoms(ctx, idx, LayerKind.MAX_POOL)
    spec.update({
        'op': 'Pooling',
        'bottoms': bottoms,
        'params': _pooling_params(generator, record, 'P.Pooling.MAX'),
        'blobs': [],
    })
    ctx.specs.append(spec)
    return True


def handle_avg_pool(
    generator: Any,
    ctx: Any,
    layer_name: str,
    record: LayerRecord,
    spec: Dict[str, Any],
    idx: int,
) -> bool:
    """Handle dlib avg_pool layer as a caffe AVE Pooling."""
    bottoms = generator._resolve_bottoms(ctx, idx, LayerKind.AVG_POOL)
    spec.update({
        'op': 'Pooling',
        'bottoms': bottoms,
        'params': _pooling_params(generator, record, 'P.Pooling.AVE'),
        'blobs': [],
    })
    ctx.specs.append(spec)
    return True
