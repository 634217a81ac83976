from __future__ import annotations

import asyncio
from typing import Optional

from core.action_patterns import resolve_action_patterns
from core.interaction import InteractionController, MenuState
from core.models import HighlightVariant, MenuCandidate


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class Card:
    def __init__(self, has_menu: bool = True) -> None:
        self.has_menu = has_menu


class FakeMenu:
    def __init__(self, labels: list[str], appear_after_polls: int = 0) -> None:
        self.labels = labels
        self.appear_after_polls = appear_after_polls
        self.polls = 0
        self.toggles: list = []
        self.invoked: list[str] = []
        self.cancel_signals = 0
        self.fail_on_poll = False

    def find_trigger(self, handle: Card) -> Optional[Card]:
        return handle if handle.has_menu else None

    def toggle_menu(self, trigger) -> None:
        self.toggles.append(trigger)

    def poll_menu_candidates(self) -> list[MenuCandidate]:
        if self.fail_on_poll:
            raise RuntimeError("document went away")
        self.polls += 1
        if self.polls <= self.appear_after_polls:
            return []
        return [MenuCandidate(text=label, element=label) for label in self.labels]

    def invoke_candidate(self, candidate: MenuCandidate) -> None:
        self.invoked.append(candidate.text)

    def dispatch_cancel_signal(self) -> None:
        self.cancel_signals += 1


class FakePresentation:
    def __init__(self) -> None:
        self.highlights: list[tuple[object, str]] = []
        self.hidden: list[object] = []

    def hide(self, handle) -> None:
        self.hidden.append(handle)

    def highlight(self, handle, variant: str) -> None:
        self.highlights.append((handle, variant))


MENU = ["Add to queue", "Not interested", "Don't recommend channel"]


def _controller(menu: FakeMenu, clock: FakeClock, strict: bool = False):
    presentation = FakePresentation()
    controller = InteractionController(menu, presentation, sleep=clock.sleep, clock=clock.clock)
    controller.configure(resolve_action_patterns("en"), use_strict_blocking=strict)
    return controller, presentation


def test_live_run_clicks_primary_target_without_closing() -> None:
    menu = FakeMenu(MENU)
    clock = FakeClock()
    controller, _ = _controller(menu, clock)
    card = Card()

    result = asyncio.run(controller.interact(card, dry_run=False))

    assert result.target_found and result.acted
    assert menu.invoked == ["Not interested"]
    assert menu.toggles == [card]
    assert menu.cancel_signals == 0
    assert controller.state is MenuState.CLOSED


def test_strict_target_preferred_when_enabled() -> None:
    menu = FakeMenu(MENU)
    controller, _ = _controller(menu, FakeClock(), strict=True)

    asyncio.run(controller.interact(Card(), dry_run=False))
    assert menu.invoked == ["Don't recommend channel"]


def test_strict_falls_back_to_primary_when_missing() -> None:
    menu = FakeMenu(["Not interested"])
    controller, _ = _controller(menu, FakeClock(), strict=True)

    asyncio.run(controller.interact(Card(), dry_run=False))
    assert menu.invoked == ["Not interested"]


def test_target_found_after_menu_appears_late() -> None:
    menu = FakeMenu(MENU, appear_after_polls=3)
    clock = FakeClock()
    controller, _ = _controller(menu, clock)

    result = asyncio.run(controller.interact(Card(), dry_run=False))
    assert result.target_found
    assert menu.polls == 4
    assert clock.sleeps == [0.05, 0.05, 0.05]


def test_timeout_resolves_not_found_and_closes_menu() -> None:
    menu = FakeMenu(["Add to queue", "Save"])
    clock = FakeClock()
    controller, _ = _controller(menu, clock)
    card = Card()

    result = asyncio.run(controller.interact(card, dry_run=False))

    assert not result.target_found
    assert not result.acted
    assert menu.invoked == []
    # Opened once, toggled again to close, then the cancel fallback.
    assert menu.toggles == [card, card]
    assert menu.cancel_signals == 1
    assert controller.state is MenuState.CLOSED


def test_dry_run_never_clicks_and_always_closes() -> None:
    menu = FakeMenu(MENU)
    controller, presentation = _controller(menu, FakeClock())
    card = Card()

    result = asyncio.run(controller.interact(card, dry_run=True))

    assert result.target_found and not result.acted
    assert menu.invoked == []
    assert menu.toggles == [card, card]
    assert menu.cancel_signals == 1
    assert presentation.highlights == [(card, HighlightVariant.MENU_TARGET_FOUND)]


def test_dry_run_result_is_cached_per_handle() -> None:
    menu = FakeMenu(MENU)
    controller, presentation = _controller(menu, FakeClock())
    card = Card()

    async def scenario():
        first = await controller.interact(card, dry_run=True)
        second = await controller.interact(card, dry_run=True)
        return first, second

    first, second = asyncio.run(scenario())

    assert first.target_found == second.target_found
    assert menu.toggles.count(card) == 2  # one open, one close
    assert presentation.highlights[-1] == (card, HighlightVariant.MENU_TARGET_FOUND)


def test_configure_clears_cache() -> None:
    menu = FakeMenu(MENU)
    controller, _ = _controller(menu, FakeClock())
    card = Card()

    async def scenario():
        await controller.interact(card, dry_run=True)
        controller.configure(resolve_action_patterns("en"), use_strict_blocking=False)
        assert controller.cached_result(card) is None
        await controller.interact(card, dry_run=True)

    asyncio.run(scenario())
    assert menu.toggles.count(card) == 4


def test_missing_menu_button_is_not_found_and_cached() -> None:
    menu = FakeMenu(MENU)
    controller, presentation = _controller(menu, FakeClock())
    card = Card(has_menu=False)

    result = asyncio.run(controller.interact(card, dry_run=True))

    assert not result.target_found
    assert menu.toggles == []
    assert controller.cached_result(card) is False

    asyncio.run(controller.interact(card, dry_run=True))
    assert presentation.highlights == [(card, HighlightVariant.MENU_TARGET_NOT_FOUND)]


def test_host_errors_resolve_not_found_and_close() -> None:
    menu = FakeMenu(MENU)
    menu.fail_on_poll = True
    controller, _ = _controller(menu, FakeClock())
    card = Card()

    result = asyncio.run(controller.interact(card, dry_run=False))

    assert not result.target_found
    assert menu.toggles == [card, card]
    assert menu.cancel_signals == 1


def test_unhashable_handles_are_not_cached() -> None:
    class Trigger:
        pass

    class ListMenu(FakeMenu):
        def find_trigger(self, handle):
            return Trigger()

    menu = ListMenu(MENU)
    controller, _ = _controller(menu, FakeClock())

    assert asyncio.run(controller.interact(["not", "weakrefable"], dry_run=True)).target_found


def test_close_finishes_before_interact_returns() -> None:
    class StateRecordingMenu(FakeMenu):
        def poll_menu_candidates(self) -> list[MenuCandidate]:
            self.states.append(controller.state)
            return super().poll_menu_candidates()

    menu = StateRecordingMenu(["Add to queue"])
    menu.states = []
    controller, _ = _controller(menu, FakeClock())
    first, second = Card(), Card()

    async def scenario():
        await controller.interact(first, dry_run=True)
        after_first = (list(menu.toggles), menu.cancel_signals, controller.state)
        await controller.interact(second, dry_run=True)
        return after_first

    toggles, cancel_signals, state = asyncio.run(scenario())

    assert toggles == [first, first]
    assert cancel_signals == 1
    assert state is MenuState.CLOSED
    assert set(menu.states) == {MenuState.SEARCHING}
    assert menu.toggles == [first, first, second, second]
