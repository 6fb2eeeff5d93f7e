# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Various internal functionality used by the model module.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    MutableMapping,
    Optional,
    TypeVar,
)

ItemT = TypeVar("ItemT")


class OrderedContainer(MutableMapping[str, ItemT]):
    """
    A mapping of unique names to items that iterates in the order given by a sort key.

    Items with equal sort keys keep the order in which they were first inserted, and so do all
    items when no sort key is given. Assigning to an existing name replaces the item in place.
    """

    def __init__(self, sort_key: Optional[Callable[[ItemT], Any]] = None) -> None:
        """
        :param sort_key: Function returning the sort key of an item. If None, items are kept in
                         insertion order.
        """
        self._storage: Dict[str, ItemT] = {}
        self._order: List[str] = []
        self._sort_key = sort_key

    def __getitem__(self, name: str, /) -> ItemT:
        return self._storage[name]

    def __setitem__(self, name: str, item: ItemT, /) -> None:
        if name not in self._storage:
            self._order.append(name)
        self._storage[name] = item
        self.sort()

    def __delitem__(self, name: str, /) -> None:
        del self._storage[name]
        self._order.remove(name)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._order))

    def __contains__(self, name: Any) -> bool:
        return name in self._storage

    def __len__(self) -> int:
        return len(self._storage)

    def remove(self, name: str) -> Optional[ItemT]:
        """
        Remove an item if present.

        :param name: Name of the item.
        :return: The removed item, or None if there was no such item.
        """
        if name not in self._storage:
            return None
        item = self._storage[name]
        del self[name]
        return item

    def clear(self) -> None:
        self._storage.clear()
        self._order.clear()

    def sort(self) -> None:
        """Re-establish the iteration order after items were modified in place."""
        if self._sort_key is None:
            return
        sort_key = self._sort_key
        # list.sort() is stable, so ties keep their previous relative order
        self._order.sort(key=lambda name: sort_key(self._storage[name]))

    def rekey(self, old_name: str, new_name: str) -> None:
        """
        Move an item to a new name while keeping its position.
        An item previously stored under the new name is discarded.

        :param old_name: Current name of the item.
        :param new_name: Name to store the item under.
        """
        if old_name == new_name:
            return

        item = self._storage.pop(old_name)
        if new_name in self._storage:
            self._order.remove(new_name)
        self._order[self._order.index(old_name)] = new_name
        self._storage[new_name] = item

    def ordered(self) -> List[ItemT]:
        """Snapshot of the items in iteration order."""
        return [self._storage[name] for name in self._order]

    def find(self, predicate: Callable[[ItemT], bool]) -> Optional[ItemT]:
        """
        :param predicate: Condition to test.
        :return: The first item in iteration order satisfying the condition, if any.
        """
        for name in self._order:
            item = self._storage[name]
            if predicate(item):
                return item
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self._order)})"


def element_repr(
    klass: type,
    name: str,
    /,
    *,
    address: Optional[int] = None,
    length: Optional[int] = None,
    bool_props: Iterable[Any] = (),
    kv_props: Mapping[Any, Any] = MappingProxyType({}),
) -> str:
    """
    Common pretty print function for model elements.

    :param klass: Class of the element.
    :param name: Name of the element.
    :param address: Address of the element.
    :param length: Number of instances of the element.
    :param bool_props: Additional arguments to include in the pretty print.
    :param kv_props: Additional keyword arguments to include in the pretty print.

    :return: Pretty printed string representing the element.
    """

    address_str: str = f" @ 0x{address:08x}" if address is not None else ""
    length_str: str = f"<{length}>" if length is not None else ""

    props = [f"{v!s}" for v in bool_props]
    props.extend(f"{k}: {v!s}" for k, v in kv_props.items())
    props_str = f" ({', '.join(props)})" if props else ""

    return f"[{name}{length_str}{address_str}{props_str} {{{klass.__name__}}}]"
