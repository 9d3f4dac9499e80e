# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Per layer type translation from dlib to caffe."""

from typing import Callable, Dict

from ..support_registry import LayerKind
from .activation_handlers import handle_relu
from .conv_handlers import handle_con
from .elementwise_handlers import handle_add_prev
from .linear_handlers import handle_fc, handle_fc_no_bias
from .norm_handlers import handle_affine_con, handle_affine_fc, handle_batch_norm
from .pool_handlers import handle_avg_pool, handle_max_pool

# Every LayerKind except UNSUPPORTED has exactly one handler.
LAYER_HANDLERS: Dict[LayerKind, Callable[..., bool]] = {
    LayerKind.CON: handle_con,
    LayerKind.RELU: handle_relu,
    LayerKind.MAX_POOL: handle_max_pool,
    LayerKind.AVG_POOL: handle_avg_pool,
    LayerKind.FC: handle_fc,
    LayerKind.FC_NO_BIAS: handle_fc_no_bias,
    LayerKind.BN_CON: handle_batch_norm,
    LayerKind.BN_FC: handle_batch_norm,
    LayerKind.AFFINE_CON: handle_affine_con,
    LayerKind.AFFINE_FC: handle_affine_fc,
    LayerKind.ADD_PREV: handle_add_prev,
}

__all__ = [
    "LAYER_HANDLERS",
    "handle_con",
    "handle_relu",
    "handle_max_pool",
    "handle_avg_pool",
    "handle_fc",
    "handle_fc_no_bias",
    "handle_batch_norm",
    "handle_affine_con",
    "handle_affine_fc",
    "handle_add_prev",
]
