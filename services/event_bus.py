"""Ordered subscriber lists for session lifecycle notifications."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Dict, List

from services.automation_client import ClientEvent

LOGGER = logging.getLogger(__name__)

Subscriber = Callable[[Dict[str, Any]], Any]


class EventBus:
	"""Named-event fan-out with per-subscriber failure isolation."""

	def __init__(self) -> None:
		self._subscribers: Dict[ClientEvent, List[Subscriber]] = {event: [] for event in ClientEvent}

	def subscribe(self, event: ClientEvent, handler: Subscriber) -> None:
		"""Register ``handler``; it is called after earlier subscribers."""
		self._subscribers[ClientEvent(event)].append(handler)

	def unsubscribe(self, event: ClientEvent, handler: Subscriber) -> bool:
		"""Remove the first registration of ``handler``. Returns False if absent."""
		handlers = self._subscribers[ClientEvent(event)]
		try:
			handlers.remove(handler)
		except ValueError:
			return False
		return True

	def subscribers(self, event: ClientEvent) -> List[Subscriber]:
		return list(self._subscribers[ClientEvent(event)])

	async def dispatch(self, event: ClientEvent, payload: Dict[str, Any]) -> int:
		"""Call every subscriber of ``event`` in registration order.

		Subscribers may be plain callables or coroutine functions. An exception
		from one subscriber is logged and does not stop the others.

		Returns:
			Number of subscribers that completed without raising.
		"""
		delivered = 0
		for handler in self.subscribers(event):
			try:
				result = handler(payload)
				if inspect.isawaitable(result):
					await result
				delivered += 1
			except Exception:
				LOGGER.exception("Subscriber %r failed while handling %s", handler, event.value)
		return delivered
