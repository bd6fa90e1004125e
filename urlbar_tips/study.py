from __future__ import annotations

from typing import Optional

from .config import Config
from .types import Study, StudyBranch


def study_from_config(config: Config) -> Optional[Study]:
    if not config.study_active and not config.study_branch:
        return None
    return Study(active=config.study_active, branch=config.study_branch)


def resolve_branch(study: Optional[Study], temporary_install: bool) -> Optional[StudyBranch]:
    """Pick the branch to enroll in, or None when the core must stay inactive.

    A temporary install with no study acts as the treatment branch so the tip
    can be exercised during development.
    """
    if study is not None:
        if not study.active:
            return None
        try:
            return StudyBranch(study.branch)
        except ValueError:
            return None
    if temporary_install:
        return StudyBranch.TREATMENT
    return None
