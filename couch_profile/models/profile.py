"""
User profile model returned by the profile service.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class UserProfile:
    """A user profile: identifier, optional linked identifier and attributes."""
    id: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    linked_id: Optional[str] = None
    username_attribute: str = field(default="username", repr=False)

    @property
    def username(self) -> Optional[str]:
        return self.attributes.get(self.username_attribute)

    @username.setter
    def username(self, value: Optional[str]) -> None:
        self.attributes[self.username_attribute] = value

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def add_attribute(self, name: str, value: Any) -> None:
        """Set an attribute; None values are ignored."""
        if value is not None:
            self.attributes[name] = value

