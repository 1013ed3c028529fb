from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class DashboardContext:
    user: Dict[str, Any]
    today: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def user_id(self):
        return self.user.get("id")

    @property
    def display_name(self):
        return self.user.get("display_name") or (self.user.get("email") or "").split("@")[0].title()

    def get(self, key, default=None):
        return self.payload.get(key, default)

    def __getitem__(self, key):
        return self.payload[key]
