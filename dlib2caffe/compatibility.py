# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Report which layers of a dlib network the caffe converter can handle."""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ConversionError
from .records import LayerGraph, LayerRecord
from .resolver import ReferenceResolver
from .support_registry import (
    INPUT_LAYOUTS,
    InputKind,
    LayerKind,
    get_caffe_type_mapping,
    get_replacement_suggestions,
)

STATUS_SUPPORTED = "supported"
STATUS_WARNING = "warning"
STATUS_UNSUPPORTED = "unsupported"


@dataclass
class CompatibilityFinding:
    """What the converter will do with one layer record."""

    layer_name: str
    detail_name: str
    status: str  # supported | warning | unsupported
    reason: str
    suggestion: str = ""
    mapped_caffe_type: Optional[str] = None


@dataclass
class CompatibilityReport:
    network_name: str
    findings: List[CompatibilityFinding] = field(default_factory=list)

    def with_status(self, status: str) -> List[CompatibilityFinding]:
        return [finding for finding in self.findings if finding.status == status]

    @property
    def supported(self) -> List[CompatibilityFinding]:
        return self.with_status(STATUS_SUPPORTED)

    @property
    def warnings(self) -> List[CompatibilityFinding]:
        return self.with_status(STATUS_WARNING)

    @property
    def unsupported(self) -> List[CompatibilityFinding]:
        return self.with_status(STATUS_UNSUPPORTED)

    @property
    def compatible(self) -> bool:
        return not self.unsupported

    def exit_code(self, strict_warnings: bool = False) -> int:
        """0 when the network converts, 1 otherwise (or on warnings if strict)."""
        if not self.compatible or (strict_warnings and self.warnings):
            return 1
        return 0

    def to_dict(self) -> Dict[str, Any]:
        counts = Counter(finding.status for finding in self.findings)
        return {
            "network_name": self.network_name,
            "compatible": self.compatible,
            "layer_count": len(self.findings),
            "status_counts": {status: counts[status] for status in (STATUS_SUPPORTED, STATUS_WARNING, STATUS_UNSUPPORTED)},
            "findings": [asdict(finding) for finding in self.findings],
        }


_REPLACEMENT_SUGGESTIONS = get_replacement_suggestions()
_CAFFE_TYPE_MAPPING = get_caffe_type_mapping()


def _check_input(record: LayerRecord) -> CompatibilityFinding:
    try:
        input_kind = InputKind(record.detail_name)
    except ValueError:
        return CompatibilityFinding(
            layer_name=record.caffe_name,
            detail_name=record.detail_name,
            status=STATUS_UNSUPPORTED,
            reason=f"No known transformation from dlib's {record.detail_name} layer to caffe.",
            suggestion="Use input_rgb_image_sized, input_rgb_image or input.",
        )

    _, sized = INPUT_LAYOUTS[input_kind]
    if not sized:
        return CompatibilityFinding(
            layer_name=record.caffe_name,
            detail_name=record.detail_name,
            status=STATUS_WARNING,
            reason="The input layer has no fixed size, a default size is written instead.",
            suggestion="Use input_rgb_image_sized or edit input_nr/input_nc in the generated script.",
            mapped_caffe_type="MemoryData",
        )
    return CompatibilityFinding(
        layer_name=record.caffe_name,
        detail_name=record.detail_name,
        status=STATUS_SUPPORTED,
        reason="Input layer maps to caffe MemoryData.",
        mapped_caffe_type="MemoryData",
    )


def _check_layer(resolver: ReferenceResolver, position: int) -> CompatibilityFinding:
    record = resolver.records[position]
    kind = LayerKind.from_detail_name(record.detail_name)
    finding = CompatibilityFinding(
        layer_name=record.caffe_name,
        detail_name=record.detail_name,
        status=STATUS_SUPPORTED,
        reason="Supported by the converter.",
        mapped_caffe_type=_CAFFE_TYPE_MAPPING.get(kind),
    )

    if kind is LayerKind.UNSUPPORTED:
        finding.status = STATUS_UNSUPPORTED
        finding.reason = f"No known transformation from dlib's {record.detail_name} layer to caffe."
    elif kind in (LayerKind.BN_CON, LayerKind.BN_FC):
        finding.status = STATUS_UNSUPPORTED
        finding.reason = "Batch norm layers can't be converted, only their affine (test mode) form."
    elif kind in (LayerKind.MAX_POOL, LayerKind.AVG_POOL) and (
        record.attributes.get("padding_x", 0) != 0 or record.attributes.get("padding_y", 0) != 0
    ):
        finding.status = STATUS_UNSUPPORTED
        finding.reason = "dlib and caffe implement pooling with non-zero padding differently."
    else:
        try:
            resolver.resolve(position, kind)
        except ConversionError as exc:
            finding.status = STATUS_UNSUPPORTED
            finding.reason = str(exc)

    if finding.status != STATUS_SUPPORTED:
        finding.mapped_caffe_type = None
        finding.suggestion = _REPLACEMENT_SUGGESTIONS.get(record.detail_name, "")
    return finding


def scan_layer_graph(graph: LayerGraph, network_name: str = "network") -> CompatibilityReport:
    """
    Check every layer of ``graph`` against the converter's support.

    Unlike the conversion itself, the scan does not stop at the first
    problem, so one run lists everything that needs to change.
    """
    report = CompatibilityReport(network_name=network_name)
    resolver = ReferenceResolver.from_graph(graph)
    for position, record in enumerate(resolver.records):
        if record.is_input:
            report.findings.append(_check_input(record))
        elif record.is_loss:
            report.findings.append(CompatibilityFinding(
                layer_name=record.caffe_name,
                detail_name=record.detail_name,
                status=STATUS_SUPPORTED,
                reason="Loss layers are not converted, the caffe network ends at the layer before it.",
            ))
        else:
            report.findings.append(_check_layer(resolver, position))
    return report


def summarize_report(report: CompatibilityReport) -> str:
    """One line per layer that needs attention, then the verdict."""
    lines = [f"{report.network_name}: {len(report.findings)} layers"]
    for finding in report.findings:
        if finding.status == STATUS_SUPPORTED:
            continue
        lines.append(f"  [{finding.status}] {finding.layer_name} ({finding.detail_name}): {finding.reason}")
        if finding.suggestion:
            lines.append(f"      -> {finding.suggestion}")
    verdict = "convertible" if report.compatible else "NOT convertible"
    lines.append(f"{verdict} ({len(report.unsupported)} unsupported, {len(report.warnings)} warnings)")
    return "\n".join(lines)
