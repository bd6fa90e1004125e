from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Set, Tuple

from .types import SearchEngine, Tab, TipResult


class HostError(RuntimeError):
    pass


class BrowserHost(Protocol):
    async def get_tab(self, tab_id: int) -> Tab: ...

    async def is_browser_showing_notification(self) -> bool: ...

    async def last_browser_update_date(self) -> Optional[float]: ...

    async def get_search_engines(self) -> List[SearchEngine]: ...

    async def urlbar_search(self, text: str, focus: bool) -> None: ...

    async def close_view(self) -> None: ...

    async def focus_urlbar(self) -> None: ...

    async def clear_input(self) -> None: ...

    async def set_engagement_telemetry(self, enabled: bool) -> None: ...

    async def add_listener(self, listener: "TipListener", provider_name: str) -> None: ...

    async def remove_listener(self, listener: "TipListener") -> None: ...


class TipListener(Protocol):
    async def on_tab_activated(self, tab_id: int) -> None: ...

    async def on_navigation_completed(self, tab_id: int, frame_id: int, url: str) -> None: ...

    async def on_before_navigate(self, tab_id: int, frame_id: int, url: str) -> None: ...

    async def on_window_focus_changed(self, window_id: int) -> None: ...

    async def on_behavior_requested(self, query: str) -> bool: ...

    async def on_results_requested(self, query: str) -> List[TipResult]: ...

    async def on_result_picked(self, payload: Dict[str, Any]) -> None: ...

    async def on_engagement(self, state: str) -> None: ...


@dataclass
class InMemoryHost:
    """In-process host used by the replay CLI and the test suite.

    Names in ``failing`` make the matching host call raise HostError.
    """

    tabs: Dict[int, Tab] = field(default_factory=dict)
    engines: List[SearchEngine] = field(default_factory=list)
    showing_notification: bool = False
    last_update_ts: Optional[float] = 0.0
    failing: Set[str] = field(default_factory=set)

    listeners: Dict[str, TipListener] = field(default_factory=dict)
    engagement_telemetry: bool = False
    searches: List[Tuple[str, bool]] = field(default_factory=list)
    displayed: List[TipResult] = field(default_factory=list)
    close_view_count: int = 0
    focus_count: int = 0
    clear_count: int = 0
    input_value: str = ""

    def _check(self, name: str) -> None:
        if name in self.failing:
            raise HostError(f"{name} unavailable")

    def set_tab(self, tab_id: int, url: str, active: bool = True) -> Tab:
        if active:
            for tab in self.tabs.values():
                tab.active = False
        tab = Tab(tab_id=tab_id, url=url, active=active)
        self.tabs[tab_id] = tab
        return tab

    async def get_tab(self, tab_id: int) -> Tab:
        self._check("get_tab")
        tab = self.tabs.get(tab_id)
        if tab is None:
            raise HostError(f"no tab {tab_id}")
        return tab

    async def is_browser_showing_notification(self) -> bool:
        self._check("is_browser_showing_notification")
        return self.showing_notification

    async def last_browser_update_date(self) -> Optional[float]:
        self._check("last_browser_update_date")
        return self.last_update_ts

    async def get_search_engines(self) -> List[SearchEngine]:
        self._check("get_search_engines")
        return list(self.engines)

    async def urlbar_search(self, text: str, focus: bool) -> None:
        self._check("urlbar_search")
        self.searches.append((text, focus))
        self.input_value = text
        if focus:
            self.focus_count += 1
        self.displayed = await self.run_query(text)

    async def close_view(self) -> None:
        self.close_view_count += 1
        self.displayed = []

    async def focus_urlbar(self) -> None:
        self.focus_count += 1

    async def clear_input(self) -> None:
        self.clear_count += 1
        self.input_value = ""

    async def set_engagement_telemetry(self, enabled: bool) -> None:
        self.engagement_telemetry = enabled

    async def add_listener(self, listener: TipListener, provider_name: str) -> None:
        self.listeners[provider_name] = listener

    async def remove_listener(self, listener: TipListener) -> None:
        for name, registered in list(self.listeners.items()):
            if registered is listener:
                del self.listeners[name]

    # Event delivery.

    async def activate_tab(self, tab_id: int) -> None:
        tab = self.tabs.get(tab_id)
        if tab is not None:
            self.set_tab(tab_id, tab.url, active=True)
        for listener in list(self.listeners.values()):
            await listener.on_tab_activated(tab_id)

    async def start_navigation(self, tab_id: int, url: str, frame_id: int = 0) -> None:
        for listener in list(self.listeners.values()):
            await listener.on_before_navigate(tab_id, frame_id, url)

    async def complete_navigation(self, tab_id: int, url: str, frame_id: int = 0) -> None:
        tab = self.tabs.get(tab_id)
        if frame_id == 0 and tab is not None:
            tab.url = url
        for listener in list(self.listeners.values()):
            await listener.on_navigation_completed(tab_id, frame_id, url)

    async def change_window_focus(self, window_id: int) -> None:
        for listener in list(self.listeners.values()):
            await listener.on_window_focus_changed(window_id)

    async def run_query(self, query: str) -> List[TipResult]:
        results: List[TipResult] = []
        for listener in list(self.listeners.values()):
            if await listener.on_behavior_requested(query):
                results.extend(await listener.on_results_requested(query))
        return results

    async def pick_result(self, result: TipResult) -> None:
        for listener in list(self.listeners.values()):
            await listener.on_result_picked(result.to_dict()["payload"])
        await self.notify_engagement("engagement")

    async def notify_engagement(self, state: str) -> None:
        for listener in list(self.listeners.values()):
            await listener.on_engagement(state)
        if state != "start":
            self.displayed = []
