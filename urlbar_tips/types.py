from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    import logging

    from .config import Config
    from .db import Database
    from .host import BrowserHost
    from .metrics import Telemetry


class StudyBranch(str, enum.Enum):
    CONTROL = "control"
    TREATMENT = "treatment"


class TipKind(str, enum.Enum):
    NONE = ""
    ONBOARD = "onboard"
    REDIRECT = "redirect"


class EngagementState(str, enum.Enum):
    START = "start"
    ENGAGEMENT = "engagement"
    ABANDONMENT = "abandonment"
    DISCARD = "discard"


@dataclass
class Tab:
    tab_id: int
    url: str
    active: bool = True


@dataclass
class SearchEngine:
    name: str
    is_default: bool = False
    fav_icon_url: Optional[str] = None


@dataclass
class Study:
    active: bool
    branch: str


@dataclass
class TipState:
    """Mutable state shared by the evaluator and the engagement machine.

    ``shown_count`` caches the persisted counter once it has been read; it is
    None until the first successful load.
    """

    shown_in_session: bool = False
    shown_in_current_engagement: bool = False
    armed_tip: TipKind = TipKind.NONE
    shown_count: Optional[int] = None


@dataclass
class EligibilityDecision:
    tip: TipKind
    reason: str

    @property
    def should_show(self) -> bool:
        return self.tip is not TipKind.NONE


@dataclass
class TipResult:
    text: str
    heuristic: bool
    icon: Optional[str] = None
    button_text: str = "Okay, Got It"
    type: str = "tip"
    source: str = "local"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "source": self.source,
            "heuristic": self.heuristic,
            "payload": {
                "text": self.text,
                "icon": self.icon,
                "buttonText": self.button_text,
            },
        }


@dataclass
class AppContext:
    config: "Config"
    logger: "logging.Logger"
    db: "Database"
    host: "BrowserHost"
    telemetry: "Telemetry"
    state: TipState = field(default_factory=TipState)
