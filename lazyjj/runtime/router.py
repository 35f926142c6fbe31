"""Event routing: one event in, state mutated, follow-up effects out.

``Router.update`` is the only place UI state changes. It applies a fixed
precedence, first match wins:

1. ``Close`` dismisses one overlay (leader, diff, stacked modal, op-log).
2. While an input-capturing overlay (leader mode) is open, keys and mouse
   events go to it alone.
3. Keys go to the focused editor: password prompt, diff view, revset
   editor, quick-search field, revisions in a non-normal operation, stacked
   modal.
4. Mouse events go to the active drag target, or to the topmost surface
   under the pointer.
5. Everything else reaches the sequence matcher (keys only), the global
   bindings and intent handlers, and is then broadcast to the long-lived
   surfaces.

Nothing here blocks or performs I/O; effects are returned to the loop.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..effects import CommandMode, EnableMouse, Effect, Post, Quit, RunCommand, Schedule, Suspend, post_all
from ..events import (
    Close,
    CommandCompleted,
    Event,
    Flash,
    FocusGained,
    FrameTick,
    KeyPress,
    ModalResult,
    MouseButton,
    MouseEvent,
    MouseKind,
    Refresh,
    Resize,
    RunScript,
    ScriptInstruction,
    ScriptReply,
    SelectionChanged,
    SequenceTimeout,
    ShowChoose,
    ShowDiff,
    ShowInput,
    ShowPreview,
    Tick,
    ToggleHelp,
    TogglePassword,
    UpdateRevset,
    as_event_list,
    handler_name,
    is_input_event,
)
from ..input.key_registry import KeyComboBinding, KeyComboRegistry
from ..input.sequence import SequenceBinding, SequenceResult
from ..jj import with_executable
from ..selection import SelectedFile, SelectedRevision, placeholders
from ..views.base import Surface
from ..views.diff import DiffView
from ..views.leader import LeaderView
from ..views.modals import (
    BookmarksModal,
    ChooseModal,
    CustomCommandsModal,
    GitModal,
    HelpModal,
    InputModal,
    redo_modal,
    undo_modal,
)
from ..views.oplog import OplogView
from ..views.password import PasswordView
from ..views.sequence_overlay import SequenceOverlay
from .overlays import MOUSE_Z_ORDER, OverlayKind
from .state import CUSTOM_ACTION_PREFIX, LoopMode, UIState

logger = logging.getLogger(__name__)

AUTO_REFRESH_TICK = "auto_refresh"


class Router:
    def __init__(self, state: UIState) -> None:
        self.state = state
        self._actions: dict[str, Callable[[], list[Effect]]] = {}
        self._registry = self._build_registry()

    # -- startup --------------------------------------------------------

    def startup(self) -> list[Effect]:
        """Effects to run once before the first event."""
        state = self.state
        effects: list[Effect] = [EnableMouse()]
        effects.extend(state.preview.validate_position())
        revset = state.revset.resolve(state.revset.current)
        state.revset.set_current(revset)
        effects.extend(state.revisions.load(revset, keep_selection=False))
        interval = state.config.auto_refresh_interval
        if interval > 0:
            effects.append(Schedule(float(interval), Tick(AUTO_REFRESH_TICK)))
        return effects

    # -- global bindings --------------------------------------------------

    def _build_registry(self) -> KeyComboRegistry:
        state = self.state
        overlays = state.overlays
        actions = {
            "quit": self._quit,
            "suspend": lambda: [Suspend()],
            "refresh": lambda: [Post(Refresh())],
            "oplog.mode": self._open_oplog,
            "revset": self._edit_revset,
            "git.mode": self._open_git,
            "undo": lambda: self._open_stacked(undo_modal(state.config.keymap)),
            "redo": lambda: self._open_stacked(redo_modal(state.config.keymap)),
            "bookmark.mode": self._open_bookmarks,
            "help": lambda: [Post(ToggleHelp())],
            "preview.mode": lambda: [Post(ShowPreview(not state.preview.visible))],
            "preview.toggle_bottom": self._preview_toggle_bottom,
            "preview.expand": self._preview_expand,
            "preview.shrink": self._preview_shrink,
            "custom_commands": self._open_custom_commands,
            "leader": self._open_leader,
            "quick_search": self._quick_search,
        }
        self._actions = actions
        registry = KeyComboRegistry(state.config.keymap)
        registry.register_bindings(
            KeyComboBinding("cancel", self._clear_error, when=lambda: state.error is not None),
            KeyComboBinding("cancel", self._close_stacked, when=lambda: overlays.stacked is not None),
            KeyComboBinding("cancel", self._dismiss_flash, when=lambda: overlays.flash.any()),
            KeyComboBinding("quit", actions["quit"], when=state.is_safe_to_quit),
            KeyComboBinding("quick_search", actions["quick_search"], when=lambda: overlays.oplog is None),
            *(
                KeyComboBinding(action, handler)
                for action, handler in actions.items()
                if action not in ("quit", "quick_search")
            ),
        )
        return registry

    def _quit(self) -> list[Effect]:
        self.state.scripts.cancel()
        return [Quit()]

    def _clear_error(self) -> list[Effect]:
        self.state.error = None
        return []

    def _close_stacked(self) -> list[Effect]:
        self.state.overlays.close_stacked()
        return []

    def _dismiss_flash(self) -> list[Effect]:
        self.state.flash.delete_oldest()
        return []

    def _open_stacked(self, modal: Surface) -> list[Effect]:
        self.state.overlays.open_stacked(modal)
        on_open = getattr(modal, "on_open", None)
        return list(on_open()) if on_open is not None else []

    def _selected_change_id(self) -> str | None:
        item = self.state.selected_item()
        if isinstance(item, (SelectedRevision, SelectedFile)):
            return item.change_id
        return None

    def _open_oplog(self) -> list[Effect]:
        state = self.state
        if state.overlays.oplog is not None:
            state.overlays.close_oplog()
            return [Post(SelectionChanged())]
        oplog = OplogView(state.config.keymap, state.config.oplog_limit)
        state.overlays.open_oplog(oplog)
        return oplog.load()

    def _edit_revset(self) -> list[Effect]:
        self.state.revset.start_editing()
        return []

    def _open_git(self) -> list[Effect]:
        state = self.state
        return self._open_stacked(
            GitModal(state.config.keymap, self._selected_change_id(), state.config.git_default_remote)
        )

    def _open_bookmarks(self) -> list[Effect]:
        return self._open_stacked(BookmarksModal(self.state.config.keymap, self._selected_change_id()))

    def _open_custom_commands(self) -> list[Effect]:
        state = self.state
        return self._open_stacked(
            CustomCommandsModal(
                state.config.keymap,
                state.custom_commands,
                state.selected_item(),
                width=state.width,
                revset=state.revset.current,
            )
        )

    def _open_leader(self) -> list[Effect]:
        state = self.state
        state.overlays.open_leader(LeaderView(state.config.leader, state.config.keymap))
        return []

    def _quick_search(self) -> list[Effect]:
        self.state.status.start_search()
        return []

    def _preview_toggle_bottom(self) -> list[Effect]:
        self.state.preview.toggle_bottom(self.state.width, self.state.height)
        return []

    def _preview_expand(self) -> list[Effect]:
        self.state.preview.expand()
        return []

    def _preview_shrink(self) -> list[Effect]:
        self.state.preview.shrink()
        return []

    def _run_custom(self, name: str) -> list[Effect]:
        state = self.state
        for command in state.custom_commands:
            if command.name == name:
                item = state.selected_item()
                if not command.is_applicable_to(item):
                    return []
                return command.prepare(item, width=state.width, revset=state.revset.current)
        return []

    def _invoke_sequence(self, binding: SequenceBinding) -> list[Effect]:
        if binding.action.startswith(CUSTOM_ACTION_PREFIX):
            return self._run_custom(binding.action[len(CUSTOM_ACTION_PREFIX) :])
        handler = self._actions.get(binding.action)
        if handler is None:
            logger.debug("sequence bound to non-global action %s", binding.action)
            return []
        return handler()

    def _sync_sequence_overlay(self) -> None:
        matcher = self.state.sequence
        state = matcher.state
        if matcher.active:
            self.state.overlays.open_sequence(SequenceOverlay(state.prefix, state.candidates))
        else:
            self.state.overlays.close_sequence()

    # -- update -----------------------------------------------------------

    def update(self, event: Event) -> list[Effect]:
        name = handler_name(event)
        state = self.state
        overlays = state.overlays

        if isinstance(event, Close):
            closed = overlays.close_one()
            if closed is not None:
                return self._finish([Post(SelectionChanged())] if closed is OverlayKind.OPLOG else [])

        capturing = overlays.capturing()
        if capturing is not None and is_input_event(event):
            return self._finish(capturing.handle(event) or [])

        if isinstance(event, KeyPress):
            focused = self._key_focus()
            if focused is not None:
                return self._finish(focused.handle(event) or [])
            consumed = self._feed_sequence(event.key)
            if consumed is not None:
                return self._finish(consumed)
        elif isinstance(event, MouseEvent):
            return self._finish(self._route_mouse(event))

        effects = list(getattr(self, f"_on_{name}")(event))
        effects.extend(self._broadcast(event))
        return self._finish(effects)

    def _finish(self, effects: list[Effect]) -> list[Effect]:
        state = self.state
        if state.mode is not LoopMode.DELEGATED:
            state.mode = LoopMode.RUNNING_SCRIPT if state.scripts.active else LoopMode.NORMAL
        state.status.mode = state.mode_name()
        state.status.error = str(state.error) if state.error is not None else ""
        focused = (
            state.overlays.password
            or state.overlays.diff
            or state.overlays.stacked
            or state.primary()
        )
        state.status.help = focused.key_help()
        return effects

    def _key_focus(self) -> Surface | None:
        """The surface that owns the keyboard, if any; it gets keys exclusively."""
        state = self.state
        overlays = state.overlays
        if overlays.password is not None:
            return overlays.password
        if overlays.diff is not None:
            return overlays.diff
        if state.revset.editing:
            return state.revset
        if state.status.focused:
            return state.status
        if overlays.oplog is None and state.revisions.is_editing:
            return state.revisions
        return overlays.stacked

    def _route_mouse(self, event: MouseEvent) -> list[Effect]:
        state = self.state
        if state.drag_target is not None:
            target = state.surface_by_id(state.drag_target)
            if target is None:
                state.drag_target = None
            elif event.kind in (MouseKind.MOTION, MouseKind.RELEASE):
                if event.kind is MouseKind.RELEASE:
                    state.drag_target = None
                return target.handle(event) or []
        if event.kind is MouseKind.MOTION:
            return []
        for surface_id in MOUSE_Z_ORDER:
            if surface_id == "stacked" and state.overlays.diff is not None:
                continue
            surface = state.surface_by_id(surface_id)
            if surface is None or not surface.frame.contains(event.x, event.y):
                continue
            if (
                event.kind is MouseKind.PRESS
                and event.button is MouseButton.LEFT
                and surface.draggable
                and surface.starts_drag(event.x, event.y)
            ):
                state.drag_target = surface.surface_id
                return []
            return surface.handle(event) or []
        return []

    def _broadcast(self, event: Event) -> list[Effect]:
        state = self.state
        effects: list[Effect] = []

        def deliver(surface: Surface | None) -> None:
            if surface is not None:
                effects.extend(surface.handle(event) or [])

        deliver(state.revset)
        deliver(state.status)
        deliver(state.flash)
        if not isinstance(event, KeyPress):
            deliver(state.overlays.stacked)
        if state.scripts.active:
            instruction = state.scripts.deliver(event)
            if instruction is not None:
                effects.append(Post(instruction))
        deliver(state.primary())
        if state.preview.visible:
            deliver(state.preview)
        return effects

    # -- handlers ---------------------------------------------------------

    def _feed_sequence(self, key: str) -> list[Effect] | None:
        """Offer ``key`` to the sequence matcher; ``None`` when not consumed."""
        result: SequenceResult = self.state.sequence.feed(key)
        if not result.consumed:
            return None
        effects: list[Effect] = []
        if result.schedule is not None:
            effects.append(result.schedule)
        if result.action is not None:
            effects.extend(self._invoke_sequence(result.action))
        self._sync_sequence_overlay()
        return effects

    def _on_key(self, event: KeyPress) -> list[Effect]:
        state = self.state
        matched, handled = self._registry.dispatch(event.key)
        if matched:
            return list(handled or [])
        for command in state.custom_commands:
            if event.key in command.key and command.is_applicable_to(state.selected_item()):
                return command.prepare(state.selected_item(), width=state.width, revset=state.revset.current)
        return []

    def _on_mouse(self, event: MouseEvent) -> list[Effect]:
        return []

    def _on_resize(self, event: Resize) -> list[Effect]:
        self.state.width = max(0, event.width)
        self.state.height = max(0, event.height)
        return []

    def _on_focus_gained(self, event: FocusGained) -> list[Effect]:
        return [Post(Refresh(keep_selection=True)), EnableMouse()]

    def _on_close(self, event: Close) -> list[Effect]:
        return []

    def _on_tick(self, event: Tick) -> list[Effect]:
        if event.kind != AUTO_REFRESH_TICK:
            return []
        interval = self.state.config.auto_refresh_interval
        if interval <= 0:
            return []
        return [Post(Refresh(keep_selection=True)), Schedule(float(interval), Tick(AUTO_REFRESH_TICK))]

    def _on_frame_tick(self, event: FrameTick) -> list[Effect]:
        return []

    def _on_sequence_timeout(self, event: SequenceTimeout) -> list[Effect]:
        self.state.sequence.timeout(event.generation)
        self._sync_sequence_overlay()
        return []

    def _on_command_completed(self, event: CommandCompleted) -> list[Effect]:
        events: list[Event] = []
        if event.continuation is not None:
            events.extend(as_event_list(event.continuation(event.output, event.error)))
        if event.error is not None:
            events.append(Flash(str(event.error), error=True))
        if event.interactive:
            events.append(Refresh(keep_selection=True))
        return post_all(events)

    def _on_script_instruction(self, event: ScriptInstruction) -> list[Effect]:
        kind = event.kind
        payload = event.payload
        if kind == "run":
            return [RunCommand(with_executable(payload), CommandMode.ASYNC, _reply_to_script)]
        if kind == "choose":
            return [Post(ShowChoose(payload[0], tuple(payload[1])))]
        if kind == "input":
            return [Post(ShowInput(payload[0], payload[1]))]
        if kind == "password":
            return [Post(TogglePassword(payload[0]))]
        follow_up: Event
        if kind == "flash":
            follow_up = Flash(payload[0], error=bool(payload[1]))
        elif kind == "revset":
            follow_up = UpdateRevset(payload[0])
        elif kind == "refresh":
            follow_up = Refresh(keep_selection=True)
        elif kind == "diff":
            follow_up = ShowDiff(payload[0])
        else:
            logger.warning("ignoring unknown script instruction %s", kind)
            return []
        return [Post(follow_up), Post(ScriptReply())]

    def _on_script_reply(self, event: ScriptReply) -> list[Effect]:
        return []

    def _on_show_diff(self, event: ShowDiff) -> list[Effect]:
        self.state.overlays.open_diff(DiffView(event.text, self.state.config.keymap))
        return []

    def _on_toggle_password(self, event: TogglePassword) -> list[Effect]:
        overlays = self.state.overlays
        if event.prompt is None:
            overlays.close_password()
        else:
            overlays.open_password(PasswordView(event.prompt, event.reply))
        return []

    def _on_show_choose(self, event: ShowChoose) -> list[Effect]:
        return self._open_stacked(ChooseModal(self.state.config.keymap, event.title, event.options))

    def _on_show_input(self, event: ShowInput) -> list[Effect]:
        return self._open_stacked(InputModal(self.state.config.keymap, event.title, event.prompt))

    def _on_modal_result(self, event: ModalResult) -> list[Effect]:
        stacked = self.state.overlays.stacked
        if stacked is not None and getattr(stacked, "result_modal", False):
            self.state.overlays.close_stacked()
        return []

    def _on_run_script(self, event: RunScript) -> list[Effect]:
        state = self.state
        context = placeholders(state.selected_item(), width=state.width, revset=state.revset.current)
        instruction = state.scripts.start(event.source, context)
        return [Post(instruction)] if instruction is not None else []

    def _on_update_revset(self, event: UpdateRevset) -> list[Effect]:
        state = self.state
        revset = state.revset.resolve(event.revset)
        state.revset.set_current(revset)
        return state.revisions.load(revset, keep_selection=False)

    def _on_refresh(self, event: Refresh) -> list[Effect]:
        state = self.state
        effects = state.revisions.load(state.revset.current, keep_selection=event.keep_selection)
        if state.overlays.oplog is not None:
            effects.extend(state.overlays.oplog.load())
        return effects

    def _on_selection_changed(self, event: SelectionChanged) -> list[Effect]:
        state = self.state
        return state.preview.load_for(state.selected_item(), width=state.width, revset=state.revset.current)

    def _on_toggle_help(self, event: ToggleHelp) -> list[Effect]:
        overlays = self.state.overlays
        if isinstance(overlays.stacked, HelpModal):
            overlays.close_stacked()
            return []
        return self._open_stacked(HelpModal(self.state.config.keymap))

    def _on_show_preview(self, event: ShowPreview) -> list[Effect]:
        state = self.state
        state.preview.visible = event.visible
        if not event.visible:
            return []
        return state.preview.load_for(state.selected_item(), width=state.width, revset=state.revset.current)

    def _on_flash(self, event: Flash) -> list[Effect]:
        return self.state.flash.add(event.message, event.error)


def _reply_to_script(output: str, error) -> ScriptReply:
    return ScriptReply(output, error)
