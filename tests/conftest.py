from __future__ import annotations

import json
from typing import Any, List, Optional, Tuple

import pytest

from models import LightMapping


class FakePublisher:
    """Records publishes instead of sending them to a broker."""

    def __init__(self, fail_with: Optional[Exception] = None) -> None:
        self.calls: List[Tuple[str, Any, int, bool]] = []
        self.fail_with = fail_with

    async def publish(self, topic: str, payload: bytes, qos: int, retain: bool) -> None:
        self.calls.append((topic, json.loads(payload), qos, retain))
        if self.fail_with is not None:
            raise self.fail_with

    @property
    def payloads(self) -> List[Any]:
        return [call[1] for call in self.calls]


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def mappings() -> List[LightMapping]:
    return [
        LightMapping(switch_id="sw1", light_id="hall", brightness=80),
        LightMapping(switch_id="sw2", light_id="kitchen"),
        LightMapping(switch_id="sw3", light_id="landing", brightness=10),
    ]
