"""Key resolution: ordered candidate bindings for a stroke."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Literal, Mapping, Optional

from mdnote_engine.runtime.telemetry import span

from .models import DEFAULT_SCOPE, ActionRef, Binding, KeyStroke
from .registry import KeymapRegistry


@dataclass(frozen=True, slots=True)
class ResolutionMatch:
    """Resolved binding paired with its action."""

    binding: Binding
    action: ActionRef


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Outcome returned from the resolver.

    ``matches`` is ordered by descending priority, then binding id.
    """

    status: Literal["match", "miss"]
    matches: tuple[ResolutionMatch, ...] = ()

    @property
    def match(self) -> Optional[ResolutionMatch]:
        return self.matches[0] if self.matches else None


class KeymapResolver:
    """Indexes bindings per scope and resolves strokes against ``when`` flags."""

    def __init__(
        self, registry: KeymapRegistry, *, logger_name: str | None = None
    ) -> None:
        self._registry = registry
        self._logger_name = logger_name
        self._cache: Dict[str, tuple[int, Dict[str, tuple[Binding, ...]]]] = {}

    def resolve(
        self,
        stroke: KeyStroke | str,
        *,
        context: Optional[Mapping[str, bool]] = None,
        scope: str = DEFAULT_SCOPE,
    ) -> ResolutionResult:
        ctx = context or {}
        token = stroke.token if isinstance(stroke, KeyStroke) else KeyStroke.parse(stroke).token
        with span(
            "keymaps::resolve",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"scope": scope, "key": token},
        ) as handle:
            matches = tuple(
                ResolutionMatch(
                    binding=binding,
                    action=self._registry.get_action(binding.action_id),
                )
                for binding in self._ensure_index(scope).get(token, ())
                if binding.allows(ctx)
            )
            if not matches:
                handle.add_metadata("status", "miss")
                return ResolutionResult(status="miss")
            handle.add_metadata("status", "match")
            handle.add_metadata("candidates", len(matches))
            return ResolutionResult(status="match", matches=matches)

    def reset(self, scope: Optional[str] = None) -> None:
        if scope is None:
            self._cache.clear()
        else:
            self._cache.pop(scope, None)

    def _ensure_index(self, scope: str) -> Dict[str, tuple[Binding, ...]]:
        revision = self._registry.revision()
        cached = self._cache.get(scope)
        if cached and cached[0] == revision:
            return cached[1]

        grouped: Dict[str, list[Binding]] = {}
        for binding in self._registry.iter_bindings(scope):
            grouped.setdefault(binding.key_signature, []).append(binding)
        index = {
            key: tuple(sorted(bindings, key=lambda b: (-b.priority, b.id)))
            for key, bindings in grouped.items()
        }
        self._cache[scope] = (revision, index)
        return index


__all__ = [
    "KeymapResolver",
    "ResolutionResult",
    "ResolutionMatch",
]
