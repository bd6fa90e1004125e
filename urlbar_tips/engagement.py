from __future__ import annotations

from typing import Any, Dict, List

from .engines import find_default_engine
from .types import AppContext, EngagementState, SearchEngine, TipKind, TipResult


def build_tip_result(tip: TipKind, engine: SearchEngine) -> TipResult:
    if tip is TipKind.ONBOARD:
        return TipResult(
            text=(
                f"Type less, find more: Search {engine.name} "
                f"right from your address bar."
            ),
            heuristic=True,
            icon=engine.fav_icon_url,
        )
    if tip is TipKind.REDIRECT:
        return TipResult(
            text=(
                f"Start your search here to see suggestions from "
                f"{engine.name} and your browsing history."
            ),
            heuristic=False,
            icon=engine.fav_icon_url,
        )
    raise ValueError(f"no result for tip {tip!r}")


class EngagementMachine:
    """Idle -> Armed -> Displayed -> Acknowledged.

    The controller arms a tip by setting ``state.armed_tip``. A results request
    consumes it, and an engagement that ends with the tip on screen
    acknowledges it by pushing the shown count to the maximum.
    """

    def __init__(self, ctx: AppContext):
        self.ctx = ctx

    async def on_behavior_requested(self, query: str) -> bool:
        return self.ctx.state.armed_tip is not TipKind.NONE

    async def on_results_requested(self, query: str) -> List[TipResult]:
        state = self.ctx.state
        tip = state.armed_tip
        state.armed_tip = TipKind.NONE
        if tip is TipKind.NONE:
            return []

        try:
            engines = await self.ctx.host.get_search_engines()
        except Exception as exc:
            self.ctx.logger.warning("search_engines_failed", extra={"error": str(exc)})
            return []
        engine = find_default_engine(engines)
        if engine is None:
            self.ctx.logger.warning("default_engine_missing", extra={"tip": tip})
            return []

        state.shown_in_current_engagement = True
        self.ctx.logger.info("tip_displayed", extra={"tip": tip, "engine": engine.name})
        return [build_tip_result(tip, engine)]

    async def on_result_picked(self, payload: Dict[str, Any]) -> None:
        # The urlbar reverts to the page URL after a pick; leave it empty instead.
        await self.ctx.host.focus_urlbar()
        await self.ctx.host.clear_input()

    async def on_engagement(self, state_name: str) -> None:
        try:
            engagement_state = EngagementState(state_name)
        except ValueError:
            self.ctx.logger.warning("unknown_engagement_state", extra={"state": state_name})
            engagement_state = None

        # Every callback, start included, begins or ends a cycle; the flag only
        # describes the engagement that rendered the tip.
        state = self.ctx.state
        try:
            if state.shown_in_current_engagement and engagement_state is EngagementState.ENGAGEMENT:
                await self.acknowledge()
        finally:
            state.shown_in_current_engagement = False

    async def acknowledge(self) -> None:
        config = self.ctx.config
        state = self.ctx.state
        state.shown_count = config.max_shown_count
        try:
            await self.ctx.db.set_state(config.storage_key, str(state.shown_count))
        except Exception:
            self.ctx.logger.exception("shown_count_store_failed", extra={"acknowledged": True})
            return
        self.ctx.logger.info("engaged", extra={"shown_count": state.shown_count})
