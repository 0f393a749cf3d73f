"""Serialized read-modify-write access to the device configuration."""
from __future__ import annotations

import logging
import threading
from typing import Callable

from splitviewer.services.camera_device import (
    ConfigurationRejected,
    DeviceProvider,
    DeviceUnavailable,
)
from splitviewer.services.capture_config import CaptureConfig

LOG = logging.getLogger(__name__)


class ConfigAccess:
    """Single gate for every device configuration read and write.

    All fetch/modify/push sequences hold ``lock`` so the filter model and the
    capture session never interleave writes on the same snapshot. The lock is
    re-entrant so the session can wrap a push and model derivation together.
    """

    def __init__(self, provider: DeviceProvider | None):
        self._provider = provider
        self.lock = threading.RLock()

    @property
    def provider(self) -> DeviceProvider:
        if self._provider is None:
            raise DeviceUnavailable("no capture device attached")
        return self._provider

    def read(self) -> CaptureConfig:
        with self.lock:
            return self._fetch()

    def modify(self, change: Callable[[CaptureConfig], CaptureConfig]) -> CaptureConfig:
        """Fetch, derive an updated copy, and push it whole. Returns the pushed snapshot."""
        with self.lock:
            updated = change(self._fetch())
            self._push(updated)
            return updated

    def _fetch(self) -> CaptureConfig:
        try:
            config = self.provider.get_config()
        except DeviceUnavailable:
            raise
        except Exception as exc:
            raise DeviceUnavailable(f"failed to fetch capture config: {exc}") from exc
        if config is None:
            raise DeviceUnavailable("capture device returned no configuration")
        return config

    def _push(self, config: CaptureConfig) -> None:
        try:
            accepted = self.provider.set_config(config)
        except DeviceUnavailable:
            raise
        except Exception as exc:
            raise DeviceUnavailable(f"failed to push capture config: {exc}") from exc
        if not accepted:
            LOG.warning("[CONFIG] device rejected snapshot %s", config)
            raise ConfigurationRejected("capture device rejected configuration")
