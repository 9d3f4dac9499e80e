# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Exception types raised while converting a dlib network to caffe."""


class ConversionError(ValueError):
    """Raised when a dlib network cannot be converted to caffe."""


class StructuralError(ConversionError):
    """Raised when the XML document or the layer graph is malformed."""


class UnsupportedLayerError(ConversionError):
    """Raised when a layer has no caffe counterpart."""


class MissingAttributeError(ConversionError):
    """Raised when a layer lacks an attribute its translation needs."""


class OutputWriteError(ConversionError):
    """Raised when the generated script cannot be written."""


class ConfigurationError(ValueError):
    """Raised when converter configuration is invalid."""
