# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Stream an XML document as start/characters/end events."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Iterator, Union

from lxml import etree

from .errors import StructuralError


@dataclass(frozen=True)
class StartElement:
    name: str
    attributes: Dict[str, str]


@dataclass(frozen=True)
class Characters:
    data: str


@dataclass(frozen=True)
class EndElement:
    name: str


XmlEvent = Union[StartElement, Characters, EndElement]


def iter_xml_events(source) -> Iterator[XmlEvent]:
    """
    Yield parse events for an XML file path or binary file object.

    An element's own text is delivered as a single Characters event right
    before its EndElement. Elements are released as soon as they are closed,
    so parameter blobs of large networks are not all kept in memory.
    """
    if isinstance(source, os.PathLike):
        source = os.fspath(source)
    try:
        # huge_tree lifts the 10MB limit lxml puts on a single text node.
        events = etree.iterparse(source, events=("start", "end"), huge_tree=True)
        for action, element in events:
            # Comments and processing instructions carry no layer information.
            if not isinstance(element.tag, str):
                continue
            if action == "start":
                yield StartElement(element.tag, dict(element.attrib))
                continue
            if element.text is not None:
                yield Characters(element.text)
            yield EndElement(element.tag)
            element.clear()
            while element.getprevious() is not None:
                del element.getparent()[0]
    except etree.XMLSyntaxError as exc:
        raise StructuralError(f"Unable to parse XML: {exc}") from exc
    except OSError as exc:
        raise StructuralError(f"Unable to open XML file {source}: {exc}") from exc
