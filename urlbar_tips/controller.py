from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

from .config import TELEMETRY_SCALARS_NAME
from .eligibility import TipEvaluator
from .engagement import EngagementMachine
from .types import AppContext, EligibilityDecision, StudyBranch, TipKind, TipResult
from .utils import utc_now_ts

SHOWN_COUNT_SCALARS = {
    "tipShownCount": {
        "kind": "count",
        "keyed": True,
        "record_on_release": True,
    },
}

NEWTAB_URL = "about:newtab"


class TipController:
    """Host event listener for one enrolled study branch.

    Handlers do nothing once the controller is unenrolled.
    """

    def __init__(
        self,
        app_ctx: AppContext,
        branch: StudyBranch,
        now_fn: Callable[[], float] = utc_now_ts,
    ):
        self.ctx = app_ctx
        self.branch = branch
        self.evaluator = TipEvaluator(app_ctx, now_fn=now_fn)
        self.engagement = EngagementMachine(app_ctx)
        self.enrolled = False
        self.display_task: Optional[asyncio.Task] = None

    async def enroll(self) -> None:
        host = self.ctx.host
        # The redirect tip opens the view without focusing the urlbar, so the
        # view has to be closed on navigation and window focus changes too.
        await host.add_listener(self, self.ctx.config.provider_name)
        await host.set_engagement_telemetry(True)
        self.ctx.telemetry.register_scalars(TELEMETRY_SCALARS_NAME, SHOWN_COUNT_SCALARS)
        self.enrolled = True
        self.ctx.logger.info("enrolled", extra={"branch": self.branch})

    async def unenroll(self) -> None:
        self.enrolled = False
        self._cancel_display()
        self.ctx.state.armed_tip = TipKind.NONE
        host = self.ctx.host
        await host.set_engagement_telemetry(False)
        await host.remove_listener(self)
        self.ctx.telemetry.clear()
        self.ctx.logger.info("unenrolled")

    async def wait_for_display(self) -> None:
        task = self.display_task
        if task is None or task.done():
            return
        await asyncio.gather(task, return_exceptions=True)

    async def maybe_show_tip_for_tab(self, tab_id: int) -> EligibilityDecision:
        try:
            tab = await self.ctx.host.get_tab(tab_id)
        except Exception as exc:
            self.ctx.logger.warning("tab_lookup_failed", extra={"tab_id": tab_id, "error": str(exc)})
            return EligibilityDecision(tip=TipKind.NONE, reason="tab_lookup_failed")

        decision = await self.evaluator.evaluate(tab)
        self.ctx.logger.debug(
            "tip_decision",
            extra={"tab_id": tab_id, "tip": decision.tip, "reason": decision.reason},
        )
        if decision.should_show and self.branch is StudyBranch.TREATMENT:
            self._schedule_display(decision.tip)
        return decision

    def _schedule_display(self, tip: TipKind) -> None:
        self._cancel_display()
        self.display_task = asyncio.create_task(self._show_tip_after_delay(tip))

    def _cancel_display(self) -> None:
        task = self.display_task
        if task is not None and not task.done():
            task.cancel()

    async def _show_tip_after_delay(self, tip: TipKind) -> None:
        # urlbar.value can be reset by the location change that follows a tab
        # switch; the delay keeps the input empty for the tip.
        await asyncio.sleep(self.ctx.config.show_tip_delay_sec)
        if not self.enrolled:
            return
        state = self.ctx.state
        state.armed_tip = tip
        try:
            await self.ctx.host.urlbar_search("", focus=tip is TipKind.ONBOARD)
        except Exception:
            state.armed_tip = TipKind.NONE
            self.ctx.logger.exception("urlbar_search_failed", extra={"tip": tip})

    async def _tab_is_active(self, tab_id: int) -> bool:
        try:
            tab = await self.ctx.host.get_tab(tab_id)
        except Exception as exc:
            self.ctx.logger.warning("tab_lookup_failed", extra={"tab_id": tab_id, "error": str(exc)})
            return False
        return tab.active

    async def _close_view(self) -> None:
        try:
            await self.ctx.host.close_view()
        except Exception as exc:
            self.ctx.logger.warning("close_view_failed", extra={"error": str(exc)})

    # Tab and window events.

    async def on_tab_activated(self, tab_id: int) -> None:
        if not self.enrolled:
            return
        await self.maybe_show_tip_for_tab(tab_id)

    async def on_navigation_completed(self, tab_id: int, frame_id: int, url: str) -> None:
        # New tabs are handled by on_tab_activated only; evaluating both races.
        if not self.enrolled or frame_id != 0 or url == NEWTAB_URL:
            return
        if await self._tab_is_active(tab_id):
            await self.maybe_show_tip_for_tab(tab_id)

    async def on_before_navigate(self, tab_id: int, frame_id: int, url: str) -> None:
        if not self.enrolled or frame_id != 0:
            return
        if await self._tab_is_active(tab_id):
            await self._close_view()

    async def on_window_focus_changed(self, window_id: int) -> None:
        if not self.enrolled:
            return
        await self._close_view()

    # Urlbar provider callbacks.

    async def on_behavior_requested(self, query: str) -> bool:
        if not self.enrolled:
            return False
        return await self.engagement.on_behavior_requested(query)

    async def on_results_requested(self, query: str) -> List[TipResult]:
        if not self.enrolled:
            return []
        return await self.engagement.on_results_requested(query)

    async def on_result_picked(self, payload: Dict[str, Any]) -> None:
        if not self.enrolled:
            return
        await self.engagement.on_result_picked(payload)

    async def on_engagement(self, state: str) -> None:
        if not self.enrolled:
            return
        await self.engagement.on_engagement(state)
