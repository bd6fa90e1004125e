from __future__ import annotations

from typing import Callable

from .config import TELEMETRY_SCALARS_SHOWN_COUNT_NAME
from .engines import is_default_engine_homepage, is_newtab_url
from .types import AppContext, EligibilityDecision, Tab, TipKind
from .utils import utc_now_ts


def _skip(reason: str) -> EligibilityDecision:
    return EligibilityDecision(tip=TipKind.NONE, reason=reason)


class TipEvaluator:
    """Decides whether a tab should get a tip and records the decision.

    Every check fails closed: an error from storage or from the host makes the
    tab ineligible until the next qualifying event.
    """

    def __init__(self, ctx: AppContext, now_fn: Callable[[], float] = utc_now_ts):
        self.ctx = ctx
        self.now_fn = now_fn

    async def load_shown_count(self) -> int:
        state = self.ctx.state
        if state.shown_count is None:
            stored = await self.ctx.db.get_state_int(self.ctx.config.storage_key, 0)
            # A concurrent evaluation may have loaded and bumped it meanwhile.
            if state.shown_count is None:
                state.shown_count = max(0, stored)
        return state.shown_count

    async def classify(self, url: str) -> TipKind:
        if is_newtab_url(url):
            return TipKind.ONBOARD
        try:
            if await is_default_engine_homepage(self.ctx.host, url):
                return TipKind.REDIRECT
        except Exception as exc:
            self.ctx.logger.warning(
                "homepage_check_failed", extra={"url": url, "error": str(exc)}
            )
        return TipKind.NONE

    async def evaluate(self, tab: Tab) -> EligibilityDecision:
        config = self.ctx.config
        logger = self.ctx.logger
        host = self.ctx.host
        state = self.ctx.state

        if state.shown_in_session:
            return _skip("session_cap")

        try:
            shown_count = await self.load_shown_count()
        except Exception:
            logger.exception("shown_count_load_failed")
            return _skip("storage_error")
        if shown_count >= config.max_shown_count:
            return _skip("max_shown")

        try:
            if await host.is_browser_showing_notification():
                return _skip("notification_showing")
        except Exception as exc:
            logger.warning("notification_check_failed", extra={"error": str(exc)})
            return _skip("notification_check_failed")

        try:
            updated_at = await host.last_browser_update_date()
        except Exception as exc:
            logger.warning("update_check_failed", extra={"error": str(exc)})
            return _skip("update_check_failed")
        if updated_at is None:
            return _skip("update_date_missing")
        if self.now_fn() - updated_at <= config.last_update_threshold_sec:
            return _skip("recently_updated")

        tip = await self.classify(tab.url)
        if tip is TipKind.NONE:
            return _skip("no_tip")

        # Another evaluation may have committed while this one was suspended.
        if state.shown_in_session:
            return _skip("session_cap")
        if (state.shown_count or 0) >= config.max_shown_count:
            return _skip("max_shown")

        state.shown_in_session = True
        state.shown_count = (state.shown_count or 0) + 1
        try:
            await self.ctx.db.set_state(config.storage_key, str(state.shown_count))
        except Exception:
            logger.exception("shown_count_store_failed", extra={"tip": tip})
            return _skip("storage_error")

        try:
            await self.ctx.telemetry.keyed_scalar_add(
                TELEMETRY_SCALARS_SHOWN_COUNT_NAME, tip.value, 1
            )
        except Exception:
            logger.exception("shown_count_metric_failed", extra={"tip": tip})

        logger.info(
            "tip_selected",
            extra={"tip": tip, "tab_id": tab.tab_id, "shown_count": state.shown_count},
        )
        return EligibilityDecision(tip=tip, reason="show")
