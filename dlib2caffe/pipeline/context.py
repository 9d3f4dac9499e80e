# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""State handed from pass to pass while one network is converted."""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class StageTiming:
    name: str
    elapsed_s: float


@dataclass
class PipelineContext:
    """
    Conversion state for one dlib network.

    ``generator`` is the CaffeCodeGenerator doing the work. Passes leave
    counts in ``diagnostics`` (layer_count, layer_specs_count, ...).
    """

    generator: Any
    diagnostics: Dict[str, Any] = field(default_factory=dict)
    timings: List[StageTiming] = field(default_factory=list)

    @property
    def stage_order(self) -> List[str]:
        return [timing.name for timing in self.timings]

    @property
    def total_elapsed_s(self) -> float:
        return sum(timing.elapsed_s for timing in self.timings)

    def add_timing(self, stage_name: str, elapsed_s: float) -> None:
        self.timings.append(StageTiming(stage_name, elapsed_s))
