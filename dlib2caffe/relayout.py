# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Parameter relayout from dlib's storage order to caffe's.

dlib serializes each layer's learned parameters as one text matrix. The
functions here split that matrix into the blobs caffe keeps per layer and
transpose each block so that a row-major walk over it yields the element
order caffe expects. The final blob shape is not computed here: the
generated script reshapes each flat array to caffe's own declared shape
(``net.params[name][k].data.shape``).

dlib layouts:
- con: column vector [weights..., biases...], one bias per filter at the end.
- fc: [num_inputs + 1, num_outputs], the last row holds the biases.
- fc_no_bias: [num_inputs, num_outputs].
- affine_con / affine_fc: column vector [gamma..., beta...] of length 2*d.
"""

from dataclasses import dataclass
from typing import List

import numpy as np

from .errors import StructuralError


@dataclass(frozen=True, eq=False)
class ParamBlob:
    """One caffe parameter blob of a layer, flattened in caffe's element order."""

    role: str  # weights | biases | gamma | beta
    values: np.ndarray  # 1-D float64
    source_shape: tuple  # shape of the (transposed) block before flattening

    @property
    def size(self) -> int:
        return int(self.values.size)


def _blob(role: str, block: np.ndarray) -> ParamBlob:
    block = np.asarray(block, dtype=np.float64)
    return ParamBlob(role=role, values=block.reshape(-1), source_shape=tuple(block.shape))


def _require_rows(params: np.ndarray, min_rows: int, layer_name: str) -> None:
    if params.ndim != 2 or params.shape[0] < min_rows:
        raise StructuralError(
            f"Parameter tensor of layer {layer_name} has shape {tuple(params.shape)}, "
            f"expected at least {min_rows} rows."
        )


def relayout_con(params: np.ndarray, num_filters: int, layer_name: str = "con") -> List[ParamBlob]:
    """
    Split convolution parameters into filter weights and biases.

    The last ``num_filters`` rows are the biases, everything before them the
    filter weights. Both blocks are transposed.
    """
    params = np.asarray(params, dtype=np.float64)
    num_filters = int(num_filters)
    _require_rows(params, num_filters + 1, layer_name)
    split = params.shape[0] - num_filters
    weights = params[:split, :].T
    biases = params[split:, :].T
    return [_blob("weights", weights), _blob("biases", biases)]


def relayout_fc(params: np.ndarray, layer_name: str = "fc") -> List[ParamBlob]:
    """Split fully connected parameters: transposed weights, last row as biases."""
    params = np.asarray(params, dtype=np.float64)
    _require_rows(params, 2, layer_name)
    weights = params[:-1, :].T
    biases = params[-1:, :]
    return [_blob("weights", weights), _blob("biases", biases)]


def relayout_fc_no_bias(params: np.ndarray, layer_name: str = "fc_no_bias") -> List[ParamBlob]:
    """Transpose fully connected weights of a layer without bias."""
    params = np.asarray(params, dtype=np.float64)
    _require_rows(params, 1, layer_name)
    return [_blob("weights", params.T)]


def relayout_affine(params: np.ndarray, layer_name: str = "affine") -> List[ParamBlob]:
    """
    Split affine parameters into the scale (gamma) and shift (beta) halves.

    The tensor holds 2*d values: the first d rows are gamma, the next d rows
    beta. Both halves are transposed.
    """
    params = np.asarray(params, dtype=np.float64)
    _require_rows(params, 2, layer_name)
    if params.size % 2 != 0:
        raise StructuralError(
            f"Parameter tensor of layer {layer_name} has {params.size} values, expected an even count."
        )
    dims = params.size // 2
    gamma = params[:dims, :].T
    beta = params[dims:2 * dims, :].T
    return [_blob("gamma", gamma), _blob("beta", beta)]


def total_size(blobs: List[ParamBlob]) -> int:
    """Total number of values over all blobs."""
    return sum(blob.size for blob in blobs)


def format_value(value: float, precision: int = 9) -> str:
    """Format a number like a C++ stream with the given precision (``%g``)."""
    return format(float(value), f".{precision}g")


def format_attribute(value: float) -> str:
    """Format a layer attribute without losing digits: ``1234``, ``0.5``."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_np_array(values: np.ndarray, precision: int = 9) -> str:
    """Render values as a numpy array literal for the generated script."""
    body = "".join(f"{format_value(v, precision)}," for v in np.asarray(values).reshape(-1))
    return f"np.array([{body}], dtype='float32')"
