"""Registry of editor commands and the keys bound to them."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, replace
from typing import DefaultDict, Dict, Iterator, List, Optional, Sequence

from mdnote_engine.runtime.telemetry import span

from .models import ActionRef, Binding, KeyStroke


@dataclass(slots=True)
class RegistryStats:
    action_count: int
    binding_count: int
    scopes: tuple[str, ...]


class KeymapConflictError(RuntimeError):
    """Raised when a binding would share scope, key, priority and flags with another."""

    def __init__(self, binding: Binding, conflicts: Sequence[Binding]):
        super().__init__(
            f"Binding '{binding.id}' conflicts with {[b.id for b in conflicts]}"
        )
        self.binding = binding
        self.conflicts = tuple(conflicts)


class KeymapRegistry:
    """Actions by id plus bindings indexed as ``scope -> key -> ids``.

    Every binding change bumps ``revision`` so resolvers can drop their caches.
    """

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._actions: Dict[str, ActionRef] = {}
        self._bindings: Dict[str, Binding] = {}
        self._index: DefaultDict[str, DefaultDict[str, set[str]]] = defaultdict(
            lambda: defaultdict(set)
        )
        self._logger_name = logger_name
        self._revision = 0

    def revision(self) -> int:
        return self._revision

    def get_action(self, action_id: str) -> ActionRef:
        if action_id not in self._actions:
            raise KeyError(f"Action '{action_id}' is not registered")
        return self._actions[action_id]

    def get_binding(self, binding_id: str) -> Binding:
        if binding_id not in self._bindings:
            raise KeyError(f"Binding '{binding_id}' is not registered")
        return self._bindings[binding_id]

    def register_action(self, action: ActionRef, *, replace: bool = False) -> ActionRef:
        if action.id in self._actions and not replace:
            raise ValueError(f"Action '{action.id}' already registered")
        self._actions[action.id] = action
        return action

    def register_binding(self, binding: Binding, *, replace: bool = False) -> Binding:
        with span(
            "keymaps::register_binding",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"binding_id": binding.id, "key": binding.key_signature},
        ) as handle:
            self._require_action(binding)
            if binding.id in self._bindings:
                if not replace:
                    raise ValueError(f"Binding id '{binding.id}' already registered")
                self._unindex(self._bindings.pop(binding.id))
            conflicts = self.detect_conflicts(binding)
            if conflicts and not replace:
                handle.add_metadata("conflicts", ",".join(b.id for b in conflicts))
                raise KeymapConflictError(binding, conflicts)
            for conflict in conflicts:
                self._unindex(self._bindings.pop(conflict.id))
            self._store(binding)
            return binding

    def unregister_binding(self, binding_id: str) -> Optional[Binding]:
        binding = self._bindings.pop(binding_id, None)
        if binding is None:
            return None
        self._unindex(binding)
        self._revision += 1
        return binding

    def update_binding(self, binding_id: str, **changes: object) -> Binding:
        """Replace fields of a registered binding, keeping it on conflict."""

        with span(
            "keymaps::update_binding",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"binding_id": binding_id, "fields": ",".join(sorted(changes))},
        ):
            current = self.get_binding(binding_id)
            updated = replace(current, **changes)
            self._require_action(updated)
            conflicts = self.detect_conflicts(updated, ignore=(binding_id,))
            if conflicts:
                raise KeymapConflictError(updated, conflicts)
            self._unindex(current)
            self._store(updated)
            return updated

    def iter_bindings(self, scope: Optional[str] = None) -> Iterator[Binding]:
        if scope is None:
            yield from self._bindings.values()
            return
        for ids in self._index.get(scope, {}).values():
            for binding_id in sorted(ids):
                yield self._bindings[binding_id]

    def bindings_for(self, key: KeyStroke | str, scope: str) -> List[Binding]:
        """Bindings on ``key`` in ``scope``, highest priority first."""

        token = key.token if isinstance(key, KeyStroke) else KeyStroke.parse(key).token
        ids = self._index.get(scope, {}).get(token, ())
        return sorted(
            (self._bindings[binding_id] for binding_id in ids),
            key=lambda binding: (-binding.priority, binding.id),
        )

    def stats(self) -> RegistryStats:
        return RegistryStats(
            action_count=len(self._actions),
            binding_count=len(self._bindings),
            scopes=tuple(sorted(scope for scope, keys in self._index.items() if keys)),
        )

    def detect_conflicts(
        self, binding: Binding, *, ignore: Sequence[str] = ()
    ) -> List[Binding]:
        return [
            existing
            for existing in self.bindings_for(binding.stroke, binding.scope)
            if existing.id not in ignore and existing.shadows(binding)
        ]

    def _require_action(self, binding: Binding) -> None:
        if binding.action_id not in self._actions:
            raise KeyError(
                f"Binding '{binding.id}' references unknown action '{binding.action_id}'"
            )

    def _store(self, binding: Binding) -> None:
        self._bindings[binding.id] = binding
        self._index[binding.scope][binding.key_signature].add(binding.id)
        self._revision += 1

    def _unindex(self, binding: Binding) -> None:
        keys = self._index.get(binding.scope)
        if keys is None:
            return
        ids = keys.get(binding.key_signature)
        if ids is not None:
            ids.discard(binding.id)
            if not ids:
                del keys[binding.key_signature]
        if not keys:
            del self._index[binding.scope]


__all__ = [
    "KeymapRegistry",
    "KeymapConflictError",
    "RegistryStats",
]
