"""An in-memory store for block device resources with label selection."""

from __future__ import annotations

import enum
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from nodedisk.api import BlockDeviceResource


class ClientError(Exception):
    """Base class of the errors raised by a resource client."""


class NotFoundError(ClientError):
    """The requested resource does not exist."""


class AlreadyExistsError(ClientError):
    """A resource with the same namespace and name already exists."""


class ConflictError(ClientError):
    """The resource was changed by someone else since it was read."""


class Operator(enum.Enum):
    """Operators allowed in a label selector requirement."""

    EQUALS = "="
    NOT_EQUALS = "!="
    EXISTS = "exists"
    DOES_NOT_EXIST = "!"


@dataclass(frozen=True)
class LabelRequirement:
    """One requirement of a label selector."""

    key: str
    operator: Operator
    value: str = ""

    def matches(self, labels: Mapping[str, str]) -> bool:
        if self.operator is Operator.EXISTS:
            return self.key in labels
        if self.operator is Operator.DOES_NOT_EXIST:
            return self.key not in labels
        if self.operator is Operator.EQUALS:
            return self.key in labels and labels[self.key] == self.value
        # A missing label satisfies an inequality.
        return labels.get(self.key) != self.value


_BINARY_OPERATORS = (
    ("!=", Operator.NOT_EQUALS),
    ("==", Operator.EQUALS),
    ("=", Operator.EQUALS),
)
_FORBIDDEN = set("=! \t")


def _check_token(token: str, what: str, term: str, allow_empty: bool) -> None:
    if not token and not allow_empty:
        raise ValueError(f"empty {what} in selector requirement {term!r}")
    if _FORBIDDEN & set(token):
        raise ValueError(f"invalid {what} {token!r} in selector requirement {term!r}")


def _parse_requirement(term: str) -> LabelRequirement:
    for token, operator in _BINARY_OPERATORS:
        key, sep, value = term.partition(token)
        if sep:
            key, value = key.strip(), value.strip()
            _check_token(key, "key", term, allow_empty=False)
            _check_token(value, "value", term, allow_empty=True)
            return LabelRequirement(key, operator, value)
    if term.startswith("!"):
        key = term[1:].strip()
        _check_token(key, "key", term, allow_empty=False)
        return LabelRequirement(key, Operator.DOES_NOT_EXIST)
    _check_token(term, "key", term, allow_empty=False)
    return LabelRequirement(term, Operator.EXISTS)


def parse_label_selector(selector: Optional[str]) -> List[LabelRequirement]:
    """Parse a selector such as "a!=false,b=c" into its requirements.

    An empty or missing selector selects everything. Raises ValueError
    when the selector is malformed.
    """
    if selector is None or not selector.strip():
        return []
    requirements = []
    for term in selector.split(","):
        term = term.strip()
        if not term:
            raise ValueError(f"empty requirement in selector {selector!r}")
        requirements.append(_parse_requirement(term))
    return requirements


def selector_matches(
    requirements: Iterable[LabelRequirement], labels: Mapping[str, str]
) -> bool:
    """Tell whether labels satisfy every requirement."""
    return all(requirement.matches(labels) for requirement in requirements)


_Key = Tuple[str, str]


class InMemoryClient:
    """Stores block device resources by namespace and name.

    Objects handed in and out are copies, so callers never share state
    with the store. Optimistic concurrency is checked only when an
    updated object carries a resource version.
    """

    def __init__(self, objects: Iterable[BlockDeviceResource] = ()) -> None:
        self._lock = threading.Lock()
        self._objects: Dict[_Key, BlockDeviceResource] = {}
        for obj in objects:
            self.create(obj)

    @staticmethod
    def _key(obj: BlockDeviceResource) -> _Key:
        return (obj.metadata.namespace, obj.metadata.name)

    def create(self, obj: BlockDeviceResource) -> None:
        """Store a new object; raise AlreadyExistsError if it is present."""
        key = self._key(obj)
        with self._lock:
            if key in self._objects:
                raise AlreadyExistsError(f"blockdevice {obj.metadata.name!r} already exists")
            self._objects[key] = obj.deep_copy()

    def get(self, namespace: str, name: str) -> BlockDeviceResource:
        """Return a copy of the stored object; raise NotFoundError if absent."""
        with self._lock:
            try:
                return self._objects[(namespace, name)].deep_copy()
            except KeyError:
                raise NotFoundError(f"blockdevice {name!r} not found") from None

    def update(self, obj: BlockDeviceResource) -> None:
        """Replace a stored object.

        Raises NotFoundError when it is absent and ConflictError when its
        resource version differs from the stored one.
        """
        key = self._key(obj)
        with self._lock:
            current = self._objects.get(key)
            if current is None:
                raise NotFoundError(f"blockdevice {obj.metadata.name!r} not found")
            version = obj.metadata.resource_version
            if version and version != current.metadata.resource_version:
                raise ConflictError(
                    f"blockdevice {obj.metadata.name!r} has been modified"
                )
            self._objects[key] = obj.deep_copy()

    def delete(self, obj: BlockDeviceResource) -> None:
        """Remove a stored object; raise NotFoundError if absent."""
        key = self._key(obj)
        with self._lock:
            try:
                del self._objects[key]
            except KeyError:
                raise NotFoundError(f"blockdevice {obj.metadata.name!r} not found") from None

    def list(
        self, label_selector: Union[str, Sequence[LabelRequirement], None]
    ) -> List[BlockDeviceResource]:
        """Return copies of the objects whose labels match, ordered by key."""
        if label_selector is None or isinstance(label_selector, str):
            requirements = parse_label_selector(label_selector)
        else:
            requirements = list(label_selector)
        with self._lock:
            return [
                self._objects[key].deep_copy()
                for key in sorted(self._objects)
                if selector_matches(requirements, self._objects[key].metadata.labels)
            ]