# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Activation layer handlers."""

from __future__ import annotations

from typing import Any, Dict

from ..records import LayerRecord
from ..support_registry import LayerKind


def handle_relu(
    generator: Any,
    ctx: Any,
    layer_name: str,
    record: LayerRecord,
    spec: Dict[str, Any],
    idx: int,
) -> bool:
    """Handle dlib relu layer."""
    spec.update({
        'op': 'ReLU',
        'bottoms': generator._resolve_bottoms(ctx, idx, LayerKind.RELU),
        'params': [],
        'blobs': [],
    })
    ctx.specs.append(spec)
    return True
