"""Lifecycle supervision of the single WhatsApp session.

The manager owns the automation client handle and the persisted
`ChatSession` record. Client events and HTTP-triggered calls both mutate that
state, so every transition runs under one `asyncio.Lock`; the client's own
network calls (`connect`, `terminate`) happen outside it.

Subscriber notifications are queued while the lock is held and delivered
after it is released, in commit order. A subscriber may therefore call back
into the manager (for instance reconnect on ``TERMINATED``); notifications
produced by that call are appended to the queue and delivered once the
current subscriber returns.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Tuple

from dal.session_dal import SessionDAL
from models.session_models import AccountIdentity, ChatSession, ConnectionState
from services.automation_client import AutomationClient, ClientEvent, ClientFactory
from services.errors import SessionNotReadyError, UpstreamError, ZapGroupsError
from services.event_bus import EventBus, Subscriber
from services.login_token import LoginTokenRenderer

LOGGER = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "zapzap-session"
MANUAL_DISCONNECT_REASON = "manual disconnect"


class SessionManager:
	"""State machine for connect → pending auth → authenticated → ready."""

	def __init__(
		self,
		session_dal: SessionDAL,
		client_factory: ClientFactory,
		session_id: str = DEFAULT_SESSION_ID,
		token_renderer: Optional[LoginTokenRenderer] = None,
		event_bus: Optional[EventBus] = None,
	) -> None:
		self.session_id = session_id
		self._sessions = session_dal
		self._client_factory = client_factory
		self._renderer = token_renderer or LoginTokenRenderer()
		self._events = event_bus or EventBus()
		self._lock = asyncio.Lock()
		self._client: Optional[AutomationClient] = None
		self._state = ConnectionState.DISCONNECTED
		self._pending: Deque[Tuple[ClientEvent, Dict[str, Any]]] = deque()
		self._draining = False
		self._released: List[AutomationClient] = []

	@property
	def state(self) -> ConnectionState:
		return self._state

	@property
	def is_ready(self) -> bool:
		return self._state is ConnectionState.READY and self._client is not None

	@property
	def client(self) -> Optional[AutomationClient]:
		return self._client

	@property
	def own_id(self) -> Optional[str]:
		"""Account id of the connected client, None unless ready."""
		if not self.is_ready:
			return None
		return self._client.own_id

	def subscribe(self, event: ClientEvent, handler: Subscriber) -> None:
		self._events.subscribe(event, handler)

	def unsubscribe(self, event: ClientEvent, handler: Subscriber) -> bool:
		return self._events.unsubscribe(event, handler)

	def require_ready(self) -> Tuple[AutomationClient, Optional[str]]:
		"""Return the live client and the account id, or raise if not ready."""
		client = self._client
		if self._state is not ConnectionState.READY or client is None:
			raise SessionNotReadyError()
		return client, client.own_id

	async def connect(self) -> None:
		"""Start a WhatsApp client unless one already exists.

		Returns once the client has been asked to connect; login progress is
		reported through events and `get_status()`.

		Raises:
			UpstreamError: If the client cannot be created or started.
		"""
		async with self._lock:
			if self._client is not None:
				LOGGER.debug("Client already running for session %s", self.session_id)
				return
			try:
				client = self._client_factory()
				self._register_handlers(client)
			except Exception as exc:
				LOGGER.exception("Failed to create WhatsApp client")
				raise UpstreamError("Failed to create WhatsApp client", exc) from exc

			if await self._sessions.get(self.session_id) is None:
				await self._sessions.put(ChatSession(session_id=self.session_id))
			self._client = client
			self._state = ConnectionState.CONNECTING

		LOGGER.info("Starting WhatsApp client for session %s", self.session_id)
		try:
			await client.connect()
		except Exception as exc:
			LOGGER.exception("WhatsApp client failed to start")
			async with self._lock:
				if self._client is client:
					self._client = None
					self._state = ConnectionState.DISCONNECTED
			await self._terminate_quietly(client)
			raise UpstreamError("Failed to start WhatsApp client", exc) from exc

	async def get_status(self) -> Dict[str, Any]:
		"""Read the persisted session; never starts a connection."""
		session = await self._sessions.get(self.session_id)
		if session is None:
			return {"connected": False, "token": None, "identity": None}
		return {
			"connected": session.is_connected,
			"token": session.login_token,
			"identity": session.identity.to_dict() if session.identity else None,
		}

	async def disconnect(self) -> None:
		"""Tear down the client (if any) and drop the session record.

		Safe to call in any state and repeatedly.

		Raises:
			UpstreamError: If the client failed to terminate. The record is
				removed and the client released regardless.
		"""
		async with self._lock:
			await self._sessions.delete(self.session_id)
			client = self._client
			self._client = None
			self._state = ConnectionState.DISCONNECTED
			if client is not None:
				self._notify(ClientEvent.TERMINATED, {"reason": MANUAL_DISCONNECT_REASON})

		if client is None:
			return

		error: Optional[BaseException] = None
		try:
			await client.terminate()
		except Exception as exc:
			LOGGER.exception("Failed to terminate WhatsApp client")
			error = exc

		LOGGER.info("WhatsApp session %s disconnected", self.session_id)
		await self._drain()

		if error is not None:
			raise UpstreamError("Failed to disconnect WhatsApp client", error) from error

	async def shutdown(self) -> None:
		"""Disconnect on application shutdown, logging instead of raising."""
		try:
			await self.disconnect()
		except ZapGroupsError as exc:
			LOGGER.warning("Error while shutting down WhatsApp session: %s", exc)

	def _register_handlers(self, client: AutomationClient) -> None:
		client.on(ClientEvent.LOGIN_TOKEN_ISSUED, self._bind(client, ClientEvent.LOGIN_TOKEN_ISSUED, self._on_login_token))
		client.on(ClientEvent.AUTHENTICATED, self._bind(client, ClientEvent.AUTHENTICATED, self._on_authenticated))
		client.on(ClientEvent.READY, self._bind(client, ClientEvent.READY, self._on_ready))
		client.on(ClientEvent.TERMINATED, self._bind(client, ClientEvent.TERMINATED, self._on_terminated))

	def _bind(
		self,
		client: AutomationClient,
		event: ClientEvent,
		handler: Callable[..., Awaitable[None]],
	) -> Callable[..., Awaitable[None]]:
		"""Wrap a transition so it runs under the lock for ``client`` only."""

		async def bound(*args: Any) -> None:
			async with self._lock:
				if client is not self._client:
					LOGGER.debug("Ignoring %s from a released client", event.value)
					return
				try:
					await handler(*args)
				except Exception:
					LOGGER.exception("Failed to apply %s; session state unchanged", event.value)
					raise

			await self._reap_released()
			await self._drain()

		return bound

	def _notify(self, event: ClientEvent, payload: Dict[str, Any]) -> None:
		"""Queue a notification; must be called with the lock held."""
		self._pending.append((event, payload))

	async def _drain(self) -> None:
		"""Deliver queued notifications outside the lock.

		Only one drain runs at a time; a nested call (from a subscriber that
		triggered another transition) returns at once and its notifications
		are picked up by the outer loop.
		"""
		if self._draining:
			return
		self._draining = True
		try:
			while self._pending:
				event, payload = self._pending.popleft()
				await self._events.dispatch(event, payload)
		finally:
			self._draining = False

	async def _reap_released(self) -> None:
		while self._released:
			await self._terminate_quietly(self._released.pop())

	async def _terminate_quietly(self, client: AutomationClient) -> None:
		"""Best-effort teardown of a client the manager no longer tracks."""
		try:
			await client.terminate()
		except Exception:
			LOGGER.warning("Failed to terminate released WhatsApp client", exc_info=True)

	async def _load_session(self) -> ChatSession:
		session = await self._sessions.get(self.session_id)
		return session if session is not None else ChatSession(session_id=self.session_id)

	async def _on_login_token(self, token: str) -> None:
		rendered = self._renderer.render(token)
		session = await self._load_session()
		session.set_login_token(rendered)
		await self._sessions.put(session)
		self._state = ConnectionState.PENDING_AUTH
		LOGGER.info("Login token issued for session %s", self.session_id)
		self._notify(ClientEvent.LOGIN_TOKEN_ISSUED, {"token": rendered})

	async def _on_authenticated(self) -> None:
		self._state = ConnectionState.AUTHENTICATED
		LOGGER.info("WhatsApp authenticated for session %s", self.session_id)
		self._notify(ClientEvent.AUTHENTICATED, {})

	async def _on_ready(self, identity: AccountIdentity) -> None:
		session = await self._load_session()
		session.set_ready(identity)
		await self._sessions.put(session)
		self._state = ConnectionState.READY
		LOGGER.info("WhatsApp ready as %s (%s)", identity.name, identity.number)
		self._notify(ClientEvent.READY, {"identity": identity.to_dict()})

	async def _on_terminated(self, reason: str) -> None:
		session = await self._sessions.get(self.session_id)
		if session is not None:
			session.set_disconnected()
			await self._sessions.put(session)
		# the client reported the end itself; its connection still needs closing
		self._released.append(self._client)
		self._client = None
		self._state = ConnectionState.DISCONNECTED
		LOGGER.info("WhatsApp disconnected: %s", reason)
		self._notify(ClientEvent.TERMINATED, {"reason": reason})
