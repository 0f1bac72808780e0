from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Iterable, Mapping, Protocol, Sequence, TypeVar

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")
T_contra = TypeVar("T_contra", contravariant=True)


@dataclass(frozen=True)
class KeyedDiff(Generic[K]):
    entered: tuple[K, ...]
    updated: tuple[K, ...]
    exited: tuple[K, ...]

    @property
    def is_empty(self) -> bool:
        return not (self.entered or self.updated or self.exited)


class ReconcileSink(Protocol[K, T_contra]):
    def create(self, key: K, item: T_contra) -> None: ...

    def update(self, key: K, previous: T_contra, item: T_contra) -> None: ...

    def destroy(self, key: K, previous: T_contra) -> None: ...


def diff_keys(previous: Iterable[K], current: Iterable[K]) -> KeyedDiff[K]:
    """Split keys into entered/updated/exited; current order wins, duplicates collapse."""
    previous_keys = list(dict.fromkeys(previous))
    current_keys = list(dict.fromkeys(current))
    previous_set = set(previous_keys)
    current_set = set(current_keys)
    return KeyedDiff(
        entered=tuple(key for key in current_keys if key not in previous_set),
        updated=tuple(key for key in current_keys if key in previous_set),
        exited=tuple(key for key in previous_keys if key not in current_set),
    )


def reconcile(
    previous: Mapping[K, T],
    items: Sequence[T],
    key: Callable[[T], K],
    sink: ReconcileSink[K, T],
) -> KeyedDiff[K]:
    current = {key(item): item for item in items}
    diff = diff_keys(previous.keys(), current.keys())
    for entered in diff.entered:
        sink.create(entered, current[entered])
    for updated in diff.updated:
        sink.update(updated, previous[updated], current[updated])
    for exited in diff.exited:
        sink.destroy(exited, previous[exited])
    return diff
