"""Session domain models for the WhatsApp account lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ConnectionState(str, Enum):
	"""Lifecycle states of the single WhatsApp session."""

	DISCONNECTED = "disconnected"
	CONNECTING = "connecting"
	PENDING_AUTH = "pending_auth"
	AUTHENTICATED = "authenticated"
	READY = "ready"


@dataclass(frozen=True)
class AccountIdentity:
	"""Display name and phone number of the connected account."""

	name: str
	number: str

	def to_dict(self) -> Dict[str, str]:
		return {"name": self.name, "number": self.number}


@dataclass
class ChatSession:
	"""Persisted record of the tracked WhatsApp session.

	Only ``DISCONNECTED``, ``PENDING_AUTH`` and ``READY`` are ever stored; the
	transient ``CONNECTING``/``AUTHENTICATED`` states live on the manager.
	``login_token`` is set only while pending authentication and ``identity``
	only while ready.
	"""

	session_id: str
	state: ConnectionState = ConnectionState.DISCONNECTED
	login_token: Optional[str] = None
	identity: Optional[AccountIdentity] = None
	connected_at: Optional[datetime] = None

	@property
	def is_connected(self) -> bool:
		return self.state is ConnectionState.READY

	def set_login_token(self, token: str) -> None:
		"""Store a fresh login token; any previous identity is dropped."""
		self.state = ConnectionState.PENDING_AUTH
		self.login_token = token
		self.identity = None
		self.connected_at = None

	def set_ready(self, identity: AccountIdentity, now: Optional[datetime] = None) -> None:
		"""Mark the session connected; the login token is no longer needed."""
		self.state = ConnectionState.READY
		self.identity = identity
		self.login_token = None
		self.connected_at = now or datetime.now(timezone.utc)

	def set_disconnected(self) -> None:
		self.state = ConnectionState.DISCONNECTED
		self.login_token = None
		self.identity = None
		self.connected_at = None

	def to_dict(self) -> Dict[str, Any]:
		return {
			"session_id": self.session_id,
			"state": self.state.value,
			"login_token": self.login_token,
			"identity": self.identity.to_dict() if self.identity else None,
			"connected_at": self.connected_at.isoformat() if self.connected_at else None,
		}
