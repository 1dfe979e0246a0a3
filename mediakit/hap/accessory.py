"""HomeKit accessories and services as found in an /accessories response."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from mediakit.hap.character import Character


@dataclass
class Service:
    """A service: a typed group of characteristics."""

    iid: int = 0
    type: str = ""
    primary: bool = False
    hidden: bool = False
    characters: List[Character] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Service":
        return cls(
            iid=data.get("iid", 0) or 0,
            type=data.get("type", "") or "",
            primary=bool(data.get("primary", False)),
            hidden=bool(data.get("hidden", False)),
            characters=[
                Character.from_dict(c) for c in data.get("characteristics") or []
            ],
        )

    def get_character(self, char_type: str) -> Optional[Character]:
        return next((c for c in self.characters if c.type == char_type), None)


@dataclass
class Accessory:
    """An accessory with its services."""

    aid: int = 0
    services: List[Service] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Accessory":
        return cls(
            aid=data.get("aid", 0) or 0,
            services=[Service.from_dict(s) for s in data.get("services") or []],
        )

    def _characters(self):
        for serv in self.services:
            yield from serv.characters

    def get_service(self, serv_type: str) -> Optional[Service]:
        return next((s for s in self.services if s.type == serv_type), None)

    def get_character(self, char_type: str) -> Optional[Character]:
        return next((c for c in self._characters() if c.type == char_type), None)

    def get_character_by_id(self, iid: int) -> Optional[Character]:
        return next((c for c in self._characters() if c.iid == iid), None)