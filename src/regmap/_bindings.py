# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Various internal functionality used by the bindings module.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import (
    Any,
    Dict,
    Iterator,
    Literal,
    Mapping,
    Optional,
    Sequence,
    Type,
    TypeVar,
    Union,
    overload,
)

import lxml.etree as ET
from typing_extensions import Self


def local_name(tag: Any) -> Optional[str]:
    """
    Tag name without the namespace, or None for nodes that are not elements (comments,
    processing instructions).
    """
    if not isinstance(tag, str):
        return None
    return tag.rpartition("}")[2]


def find_child(element: Optional[ET._Element], path: Sequence[str]) -> Optional[ET._Element]:
    """
    Follow a path of local tag names from an element.

    :param element: Element to start from.
    :param path: Local names of the elements to descend into, in order.
    :return: The element at the end of the path, or None if there is no such element.
    """
    node = element
    for name in path:
        if node is None:
            return None
        node = next(iter_children(node, name), None)
    return node


def iter_children(element: Optional[ET._Element], name: str) -> Iterator[ET._Element]:
    """
    Iterate over the children of an element with a given local tag name.
    If the element is None, an empty iterator is returned.
    """
    if element is None:
        return iter(())
    return (child for child in element.iterchildren() if local_name(child.tag) == name)


class IpxactElement(ET.ElementBase):
    """Base class for all the IP-XACT element classes."""

    TAG: str

    def __repr__(self) -> str:
        """
        A more informative string representation than the default one from lxml.
        """
        return self._repr()

    def _repr(
        self,
        props: Mapping[Any, Any] = MappingProxyType({}),
    ) -> str:
        """
        Default repr() implementation for the binding classes.
        """

        props = dict(props)

        parent = self.getparent()
        ancestors_str = f" in {parent!r}" if parent is not None else ""
        line_str = f"@{self.sourceline}" if self.sourceline is not None else ""
        props_str = f" {props}" if props else ""
        self_repr = f"[{local_name(self.tag)}{line_str}{props_str}]"

        return f"{self_repr}{ancestors_str}"


O = TypeVar("O", bound=ET.ElementBase)


class Text:
    """Data descriptor class used to access the text of a descendant XML element."""

    def __init__(self, path: str, /) -> None:
        """
        Create a data descriptor object that extracts the text of an element from an XML node.

        :param path: Slash separated local names of the element, relative to the node.
        """
        self.path: Sequence[str] = tuple(path.split("/"))

    @overload
    def __get__(self, node: Literal[None], owner: Optional[Type] = None) -> Self:
        ...

    @overload
    def __get__(self, node: O, owner: Optional[Type] = None) -> Optional[str]:
        ...

    def __get__(self, node: Optional[O], owner: Any = None) -> Union[Optional[str], Self]:
        """Get the element text from the given node, None if the element is missing."""
        if node is None:
            # If the node argument is None, we are being accessed through the class object.
            # In that case, return the descriptor itself.
            return self

        element = find_child(node, self.path)
        if element is None:
            return None

        return (element.text or "").strip()


C = TypeVar("C", bound=IpxactElement)


class BindingRegistry:
    """Simple container for XML binding classes."""

    def __init__(self) -> None:
        self._element_classes: Dict[str, Type[IpxactElement]] = {}

    def add(
        self,
        element_class: Type[C],
        /,
    ) -> Type[C]:
        """
        Add a class to the binding registry.
        This is intended to be used as a class decorator.
        """
        if element_class.TAG in self._element_classes:
            raise ValueError(f"Multiple classes for tag {element_class.TAG}")
        self._element_classes[element_class.TAG] = element_class

        return element_class

    @property
    def bindings(self) -> Mapping[str, Type[IpxactElement]]:
        """Get the registered bindings, by local tag name."""
        return MappingProxyType(self._element_classes)

