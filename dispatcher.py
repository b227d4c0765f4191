"""Switch event dispatcher."""

import asyncio
import logging
from enum import Enum
from types import MappingProxyType
from typing import Awaitable, Callable, Dict, Iterable, Optional, Protocol, Tuple

from constants import MQTT_QOS, MQTT_RETAIN
from exceptions import (
    DispatcherError,
    NoMatch,
    NotFound,
    PublishFailure,
    SerializationFailure,
    UnknownAction,
)
from light_commands import build_command, serialize_command
from models import Action, InboundEvent, LightMapping
from topics import light_command_topic, parse_switch_action_topic

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    async def publish(self, topic: str, payload: bytes, qos: int, retain: bool) -> None:
        ...


class MappingTable:
    """Read-only lookup from switch id to its light mapping."""

    def __init__(self, mappings: Iterable[LightMapping]):
        table: Dict[str, LightMapping] = {}
        for mapping in mappings:
            if mapping.switch_id in table:
                # last entry in the config wins
                logger.warning(
                    f"Duplicate mapping for switch {mapping.switch_id}: "
                    f"{table[mapping.switch_id].light_id} replaced by {mapping.light_id}"
                )
            table[mapping.switch_id] = mapping
        self._table = MappingProxyType(table)

    def lookup(self, switch_id: str) -> LightMapping:
        """Get the mapping for a switch. Raises NotFound if none is configured."""
        try:
            return self._table[switch_id]
        except KeyError:
            raise NotFound(switch_id) from None

    def __contains__(self, switch_id: object) -> bool:
        return switch_id in self._table

    def __len__(self) -> int:
        return len(self._table)


class ToggleStateStore:
    """Last on/off state assigned to each light. Lights never toggled are off."""

    def __init__(self):
        self._state: Dict[str, bool] = {}

    def current_state(self, light_id: str) -> bool:
        return self._state.get(light_id, False)

    def toggle(self, light_id: str) -> Tuple[bool, bool]:
        """Flip a light's state and return (previous, next)."""
        previous = self.current_state(light_id)
        self._state[light_id] = not previous
        return previous, not previous


class DispatcherState(Enum):
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"


class Dispatcher:
    """
    Single consumer of switch events.

    Events are handled one at a time in queue order, so the toggle state
    store has exactly one writer and needs no lock.
    """

    def __init__(
        self,
        mappings: MappingTable,
        event_queue: "asyncio.Queue[InboundEvent]",
        publisher: Publisher,
        state_store: Optional[ToggleStateStore] = None,
    ):
        self.mappings = mappings
        self.event_queue = event_queue
        self.publisher = publisher
        self.state_store = state_store if state_store is not None else ToggleStateStore()
        self.state = DispatcherState.RUNNING
        self._stop_event = asyncio.Event()
        self._actions: Dict[Action, Callable[[LightMapping], Awaitable[None]]] = {
            Action.SINGLE: self._on_single,
        }

    @property
    def shutting_down(self) -> bool:
        return self.state is DispatcherState.SHUTTING_DOWN

    def request_stop(self):
        """Stop accepting events. In-flight publish failures become non-fatal."""
        if self.shutting_down:
            return
        logger.info("Dispatcher shutting down")
        self.state = DispatcherState.SHUTTING_DOWN
        self._stop_event.set()

    async def run(self):
        """Consume events until stopped. Raises DispatcherError on fatal failures."""
        logger.info(f"Dispatcher started with {len(self.mappings)} switch mappings")
        try:
            while not self.shutting_down:
                event = await self._next_event()
                if event is None:
                    break
                try:
                    await self.handle_event(event)
                except (SerializationFailure, PublishFailure) as e:
                    if self.shutting_down:
                        logger.debug(f"Ignoring failure during shutdown: {e}")
                        break
                    raise DispatcherError(f"Failed to handle event on {event.topic}: {e}") from e
                finally:
                    self.event_queue.task_done()
        finally:
            self.request_stop()
        logger.info("Dispatcher stopped")

    async def _next_event(self) -> Optional[InboundEvent]:
        """Wait for the next queued event, or None once stop is requested."""
        get_task = asyncio.ensure_future(self.event_queue.get())
        stop_task = asyncio.ensure_future(self._stop_event.wait())
        try:
            done, _ = await asyncio.wait(
                {get_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            stop_task.cancel()
            if not get_task.done():
                get_task.cancel()
        if get_task not in done:
            return None
        event = get_task.result()
        if self.shutting_down:
            # stop and a new item landed in the same step; stop wins
            logger.debug(f"Discarding event on {event.topic}: shutting down")
            self.event_queue.task_done()
            return None
        return event

    async def handle_event(self, event: InboundEvent):
        """Process one inbound MQTT message."""
        action = event.payload.decode("utf-8", errors="replace")
        logger.debug(f"[mqtt] {event.topic} -> {action}")

        try:
            switch_id = parse_switch_action_topic(event.topic)
            mapping = self.mappings.lookup(switch_id)
            handler = self._handler_for(switch_id, action)
        except NoMatch:
            logger.info(f"unknown topic: {event.topic}")
            return
        except NotFound as e:
            logger.warning(f"unknown switch: {e.switch_id}")
            return
        except UnknownAction as e:
            logger.info(f"unknown action '{e.action}' from switch {e.switch_id}")
            return

        await handler(mapping)

    def _handler_for(self, switch_id: str, action: str) -> Callable[[LightMapping], Awaitable[None]]:
        try:
            return self._actions[Action(action)]
        except (ValueError, KeyError):
            raise UnknownAction(switch_id, action) from None

    async def _on_single(self, mapping: LightMapping):
        """Single press toggles the mapped light."""
        previous, next_state = self.state_store.toggle(mapping.light_id)
        cmd = build_command(next_state, mapping.brightness)
        payload = serialize_command(cmd)
        topic = light_command_topic(mapping.light_id)

        logger.info(
            f"Switch {mapping.switch_id} toggled light {mapping.light_id}: "
            f"{'ON' if previous else 'OFF'} -> {cmd.state}"
        )
        await self.publisher.publish(topic, payload, qos=MQTT_QOS, retain=MQTT_RETAIN)
