# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Converter configuration: structured defaults, optional YAML file, dotlist overrides."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from .errors import ConfigurationError


@dataclass
class ConverterConfig:
    # Appended to the input file name, cut at its first '.'.
    output_suffix: str = "_dlib_to_caffe_model.py"
    # None writes each script next to its XML file.
    output_dir: Optional[str] = None
    # Significant digits used for parameter values; attributes are written exactly.
    precision: int = 9
    # Rows/columns assumed when the dlib input layer has no fixed size.
    default_input_size: int = 28
    # dlib nets don't commit to a batch size.
    batch_size: int = 1
    keep_going: bool = False


def load_config(config_file: Optional[str] = None, overrides: Sequence[str] = ()) -> ConverterConfig:
    """
    Build the converter configuration.

    Args:
        config_file: Optional YAML file with ConverterConfig fields.
        overrides: KEY=VALUE strings applied last (e.g. ``precision=12``).
    """
    try:
        cfg = OmegaConf.structured(ConverterConfig)
        if config_file is not None:
            cfg = OmegaConf.merge(cfg, OmegaConf.load(config_file))
        if overrides:
            cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(list(overrides)))
        config = OmegaConf.to_object(cfg)
    except OmegaConfBaseException as exc:
        raise ConfigurationError(f"Invalid converter configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Unable to read config file {config_file}: {exc}") from exc

    if config.precision < 1:
        raise ConfigurationError(f"precision must be positive, got {config.precision}.")
    if config.default_input_size < 1:
        raise ConfigurationError(f"default_input_size must be positive, got {config.default_input_size}.")
    if config.batch_size < 1:
        raise ConfigurationError(f"batch_size must be positive, got {config.batch_size}.")
    return config
