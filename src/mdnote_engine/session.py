"""Per-session context wiring every engine component around one dispatch entry point."""

from __future__ import annotations

import time
from collections import deque
from typing import Callable, Deque, Dict, List, Optional

from mdnote_engine.annotations import AnnotationSet, compute_annotations
from mdnote_engine.blocks.autoclose import autoclose_fence
from mdnote_engine.blocks.fences import FenceKind, is_inside_block
from mdnote_engine.blocks.guard import CorruptionGuard
from mdnote_engine.commands.base import CommandContext, CommandResult, EventBus, KeyInput
from mdnote_engine.config import EngineConfig
from mdnote_engine.document.changes import EditBatch
from mdnote_engine.document.state import Selection
from mdnote_engine.document.sync import CommitEvent, EditorHost, PositionError
from mdnote_engine.keymaps import (
    KeymapRegistry,
    KeymapResolver,
    KeyStroke,
    load_default_keymaps,
)
from mdnote_engine.lists.clipboard import copy_text, paste_text
from mdnote_engine.lists.history import IndentHistoryReconciler
from mdnote_engine.lists.indent_store import ListIndentStore, SetIndentLevel
from mdnote_engine.lists.markers import is_list_line, leading_columns
from mdnote_engine.lists.renumber import RenumberingEngine
from mdnote_engine.runtime import telemetry
from mdnote_engine.runtime.reentrancy import DispatchGuard
from mdnote_engine.runtime.scheduler import Scheduler

LOGGER_NAME = "mdnote_engine.session"

RESTORE_EVENT = "history.restore"
SET_LEVEL_EVENT = "list.set-level"

REBUILD_KEY = "annotations.rebuild"
RESTORE_KEY = "history.restore"
RECAPTURE_KEY = "history.recapture"


class EditorSession:
    """Owns the annotation state of one editor and routes every edit through it.

    ``dispatch`` is the single entry point: the corruption guard sees a batch
    before the host commits it, and corrective batches produced while reacting
    to a commit are queued and applied one after another once it returns.
    """

    def __init__(
        self,
        host: EditorHost,
        *,
        config: Optional[EngineConfig] = None,
        scheduler: Optional[Scheduler] = None,
        keymap_registry: KeymapRegistry | None = None,
        keymap_resolver: KeymapResolver | None = None,
        load_defaults: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.host = host
        self.config = config or EngineConfig.from_env()
        self.scheduler = scheduler or Scheduler(clock=clock)
        self.dispatch_guard = DispatchGuard()
        self.bus = EventBus()

        self.indent_store = ListIndentStore(self.config)
        self.guard = CorruptionGuard(self.dispatch_guard)
        self.renumbering = RenumberingEngine(self.indent_store)
        self.history = IndentHistoryReconciler(self.indent_store, self.config, clock=clock)

        self.keymap_registry = keymap_registry or KeymapRegistry(
            logger_name="mdnote_engine.keymaps"
        )
        if load_defaults and keymap_registry is None:
            load_default_keymaps(self.keymap_registry)
        self.keymap_resolver = keymap_resolver or KeymapResolver(
            self.keymap_registry, logger_name="mdnote_engine.keymaps"
        )

        self._corrections: Deque[EditBatch] = deque()
        self._dispatch_depth = 0
        self._draining = False
        self._closed = False

        document = host.document
        self.indent_store.load(document)
        self.history.capture(document)
        self._annotations = compute_annotations(
            document, self.indent_store.levels(document)
        )
        self._unsubscribe = host.subscribe(self._on_commit)

    # ------------------------------------------------------------------
    # state
    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def annotations(self) -> AnnotationSet:
        """Annotations as of the last rebuild (call ``flush`` to settle them)."""

        return self._annotations

    def levels(self) -> Dict[int, int]:
        return self.indent_store.levels(self.host.document)

    def level(self, number: int) -> int:
        return self.indent_store.level_or_zero(self.host.document, number)

    def keymap_flags(self) -> Dict[str, bool]:
        document = self.host.document
        selection = self.host.selection
        head_line = document.line_at(selection.head)
        return {
            "has_selection": not selection.empty,
            "on_list_line": is_list_line(head_line.text),
            "in_prompt_block": is_inside_block(document, selection.head, FenceKind.PROMPT),
        }

    # ------------------------------------------------------------------
    # dispatch
    def dispatch(self, batch: EditBatch) -> Optional[CommitEvent]:
        if self._closed:
            telemetry.skipped("dispatch after close", logger_name=LOGGER_NAME)
            return None
        self._settle_restore()
        with telemetry.span(
            "session::dispatch",
            logger_name=LOGGER_NAME,
            component="session",
            metadata={"user_event": batch.user_event or "", "spans": len(batch.spans)},
        ) as handle:
            self._dispatch_depth += 1
            try:
                filtered = self.guard.filter(batch, self.host.document)
                if filtered is batch:
                    event = self.host.apply_edit_batch(batch)
                else:
                    handle.add_metadata("repaired", filtered.user_event)
                    with self.dispatch_guard.repairing():
                        event = self.host.apply_edit_batch(filtered)
                    self.bus.emit("blocks.repaired", event)
            finally:
                self._dispatch_depth -= 1
            if self._dispatch_depth == 0:
                self._drain()
            return event

    def type_text(self, text: str) -> Optional[CommitEvent]:
        selection = self.host.selection
        batch = autoclose_fence(self.host.document, selection.start, text, selection.end)
        if batch is None:
            batch = EditBatch.replace_range(
                selection.start,
                selection.end,
                text,
                self.host.doc_length,
                selection=Selection.cursor(selection.start + len(text)),
                user_event="input.type",
            )
        return self.dispatch(batch)

    def delete(self, start: int, end: int, *, user_event: str = "delete") -> Optional[CommitEvent]:
        return self.dispatch(
            EditBatch.delete(start, end, self.host.doc_length, user_event=user_event)
        )

    def handle_key(self, key: KeyInput | str) -> CommandResult:
        """Run the bound commands for ``key`` in priority order until one consumes it."""

        if isinstance(key, str):
            stroke = KeyStroke.parse(key)
        else:
            stroke = KeyStroke(key.key, key.modifiers)
        resolution = self.keymap_resolver.resolve(stroke, context=self.keymap_flags())
        for match in resolution.matches:
            context = self._command_context()
            with telemetry.span(
                name=f"command::{match.action.telemetry_name}",
                component=True,
                metadata={"key": stroke.token, "binding": match.binding.id},
            ):
                result = match.action(context, match)
            if not isinstance(result, CommandResult) or not result.consumed:
                continue
            if result.batch is not None:
                self.dispatch(result.batch)
            elif result.selection is not None:
                self.host.set_selection(result.selection)
            return result
        return CommandResult.passthrough()

    def set_indent_level(self, line: int, level: int) -> Optional[CommitEvent]:
        batch = EditBatch.effects_only(
            [SetIndentLevel(line=line, level=level)],
            self.host.doc_length,
            user_event=SET_LEVEL_EVENT,
        )
        return self.dispatch(batch)

    def copy(self) -> str:
        document = self.host.document
        text = copy_text(
            document,
            self.host.selection,
            self.indent_store.levels(document),
            self.config,
        )
        self.host.clipboard_write(text)
        return text

    def paste(self, payload: Optional[str] = None) -> Optional[CommitEvent]:
        text = self.host.clipboard_read() if payload is None else payload
        if not text:
            return None
        selection = self.host.selection
        line = self.host.line_at(selection.start)
        base_indent = line.text[: len(line.text) - len(line.text.lstrip(" \t"))]
        if leading_columns(base_indent) == 0:
            base_indent = ""
        transformed = paste_text(text, base_indent, self.config)
        inserted = text if transformed is None else transformed
        batch = EditBatch.replace_range(
            selection.start,
            selection.end,
            inserted,
            self.host.doc_length,
            selection=Selection.cursor(selection.start + len(inserted)),
            user_event="input.paste",
        )
        return self.dispatch(batch)

    def undo(self) -> Optional[CommitEvent]:
        return self._history_step(self.host.undo)

    def redo(self) -> Optional[CommitEvent]:
        return self._history_step(self.host.redo)

    def flush(self) -> List[str]:
        """Run every deferred callback now (tests and synchronous hosts)."""

        return self.scheduler.flush()

    def tick(self, now: Optional[float] = None) -> List[str]:
        """Run deferred callbacks whose delay has elapsed."""

        return self.scheduler.run_pending(now=now)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.scheduler.close()
        self._corrections.clear()
        self._unsubscribe()
        telemetry.record_event("session.closed", logger_name=LOGGER_NAME)

    # ------------------------------------------------------------------
    # commit pipeline
    def _history_step(self, step: Callable[[], Optional[CommitEvent]]) -> Optional[CommitEvent]:
        if self._closed:
            return None
        self._dispatch_depth += 1
        try:
            event = step()
        finally:
            self._dispatch_depth -= 1
        if self._dispatch_depth == 0:
            self._drain()
        return event

    def _on_commit(self, event: CommitEvent) -> None:
        if self._closed:
            return
        batch = event.batch
        document = event.after
        with telemetry.span(
            "session::commit",
            logger_name=LOGGER_NAME,
            component="session",
            metadata={"user_event": batch.user_event or "", "state": self.dispatch_guard.state.value},
        ):
            try:
                self.indent_store.apply(batch, document)
            except PositionError as exc:
                telemetry.skipped(
                    "indent sync", logger_name="mdnote_engine.lists", position=exc.position
                )
            if not (batch.is_undo or batch.is_redo or batch.is_user_event(RESTORE_EVENT)):
                self._settle_restore()
            self.bus.emit("edit.committed", event)

            try:
                correction = self.renumbering.corrections(batch, document)
            except PositionError as exc:
                correction = None
                telemetry.skipped(
                    "renumber", logger_name="mdnote_engine.lists", position=exc.position
                )
            if correction is not None:
                self._corrections.append(correction)

            self._track_history(batch)
            if batch.doc_changed or batch.effects:
                self.scheduler.schedule(
                    REBUILD_KEY, self._rebuild_annotations, delay_ms=self.config.rebuild_delay_ms
                )

        if self._dispatch_depth == 0:
            self._drain()

    def _track_history(self, batch: EditBatch) -> None:
        if batch.is_undo or batch.is_redo:
            self.scheduler.cancel(RECAPTURE_KEY)
            self.scheduler.schedule(
                RESTORE_KEY, self._restore_levels, delay_ms=self.config.restore_delay_ms
            )
            return
        if batch.is_user_event(RESTORE_EVENT):
            return
        self._capture()
        if self.history.is_large_insert(batch):
            self.scheduler.schedule(
                RECAPTURE_KEY, self._capture, delay_ms=self.config.recapture_delay_ms
            )

    def _capture(self) -> None:
        try:
            self.history.capture(self.host.document)
        except PositionError as exc:
            telemetry.skipped(
                "snapshot capture", logger_name="mdnote_engine.history", position=exc.position
            )

    def _drain(self) -> None:
        if self._draining:
            return
        self._draining = True
        try:
            while self._corrections and not self._closed:
                batch = self._corrections.popleft()
                if batch.doc_length != self.host.doc_length:
                    telemetry.skipped(
                        "stale correction",
                        logger_name=LOGGER_NAME,
                        user_event=batch.user_event,
                    )
                    continue
                with self.dispatch_guard.repairing():
                    self.host.apply_edit_batch(batch)
        finally:
            self._draining = False

    def _settle_restore(self) -> None:
        """Run a deferred restore now so the next edit starts from restored levels."""

        if self.scheduler.cancel(RESTORE_KEY):
            self._restore_levels()

    def _restore_levels(self) -> None:
        if self._closed:
            return
        document = self.host.document
        effect = self.history.restore_effect(document)
        if effect is None:
            return
        batch = EditBatch.effects_only(
            [effect], document.length, user_event=RESTORE_EVENT, scroll_into_view=False
        )
        with self.dispatch_guard.rebuilding():
            self.host.apply_edit_batch(batch)
        self.bus.emit("indent.restored", effect)

    def _rebuild_annotations(self) -> None:
        if self._closed:
            return
        with self.dispatch_guard.rebuilding():
            document = self.host.document
            self._annotations = compute_annotations(
                document, self.indent_store.levels(document)
            )
        self.bus.emit("annotations.updated", self._annotations)

    def _command_context(self) -> CommandContext:
        return CommandContext(
            document=self.host.document,
            selection=self.host.selection,
            store=self.indent_store,
            bus=self.bus,
            config=self.config,
            extras={"session": self, "flags": self.keymap_flags()},
        )


__all__ = ["EditorSession", "RESTORE_EVENT", "SET_LEVEL_EVENT"]
