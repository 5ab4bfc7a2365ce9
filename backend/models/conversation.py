"""Conversation data models."""
from dataclasses import dataclass, field
from typing import List, Optional

USER_ROLE = "user"
MODEL_ROLE = "model"

# Alternate labels clients send for the canonical roles
ROLE_ALIASES = {
    "assistant": MODEL_ROLE,
    "ai": MODEL_ROLE,
    "human": USER_ROLE,
}


@dataclass
class ConversationTurn:
    """A single turn of chat history in the canonical user/model scheme."""
    role: str
    parts: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(part for part in self.parts if part)

    @classmethod
    def from_raw(
        cls,
        role: str,
        parts: Optional[List[str]] = None,
        message: Optional[str] = None
    ) -> "ConversationTurn":
        """
        Build a turn from client-supplied history.

        Args:
            role: Role label; "assistant" is mapped to "model"
            parts: Text parts of the turn
            message: Simple single-string form, used when parts is empty

        Returns:
            ConversationTurn with a canonical role

        Raises:
            ValueError: If the role is not a known label
        """
        normalized = (role or "").strip().lower()
        normalized = ROLE_ALIASES.get(normalized, normalized)
        if normalized not in (USER_ROLE, MODEL_ROLE):
            raise ValueError(f"Unknown conversation role: {role!r}")

        texts = [p for p in (parts or []) if p]
        if not texts and message:
            texts = [message]
        return cls(role=normalized, parts=texts)
