"""Data structures describing git identity profiles."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class GitProfile:
    """A named git identity and the gitconfig text that activates it."""

    id: str
    name: str
    email: str
    ssh_key_path: Optional[str] = None  # envelope text on disk when encryption is on
    config_text: Optional[str] = None
    is_active: bool = False
    image_url: Optional[str] = None
    description: Optional[str] = None
    last_used: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["last_used"] = self.last_used.isoformat() if self.last_used else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GitProfile":
        last_used = data.get("last_used")
        return cls(
            id=str(data["id"]),
            name=data.get("name", "Unnamed"),
            email=data.get("email", ""),
            ssh_key_path=data.get("ssh_key_path"),
            config_text=data.get("config_text"),
            is_active=bool(data.get("is_active", False)),
            image_url=data.get("image_url"),
            description=data.get("description"),
            last_used=datetime.fromisoformat(last_used) if last_used else None,
        )

    def display_name(self) -> str:
        return f"{self.name} <{self.email}>"


ProfileList = List[GitProfile]
