from __future__ import annotations

from typing import Any, Dict, Set


class UnknownScalarError(KeyError):
    pass


def _state_key(name: str, key: str) -> str:
    return f"metrics_{name}.{key}"


class Telemetry:
    """Keyed count scalars persisted in the state table."""

    def __init__(self, db, logger):
        self.db = db
        self.logger = logger
        self._scalars: Set[str] = set()

    def register_scalars(self, category: str, scalars: Dict[str, Dict[str, Any]]) -> None:
        for scalar_name, spec in scalars.items():
            if spec.get("kind", "count") != "count" or not spec.get("keyed", False):
                raise ValueError(f"only keyed count scalars are supported: {scalar_name}")
            self._scalars.add(f"{category}.{scalar_name}")
        self.logger.debug(
            "scalars_registered",
            extra={"category": category, "scalars": sorted(scalars)},
        )

    def is_registered(self, name: str) -> bool:
        return name in self._scalars

    async def keyed_scalar_add(self, name: str, key: str, amount: int = 1) -> int:
        if name not in self._scalars:
            raise UnknownScalarError(name)
        return await self.db.increment_state_int(_state_key(name, key), amount)

    async def get_keyed_scalar(self, name: str, key: str) -> int:
        return await self.db.get_state_int(_state_key(name, key), 0)

    def clear(self) -> None:
        self._scalars.clear()
