"""Named remote endpoints over the filter configuration model.

Pure adaptation layer: each endpoint forwards to ``FilterConfigModel`` and
lets its errors propagate to the caller unchanged.
"""
from __future__ import annotations

import logging
import threading
from functools import partial
from typing import Any, Callable, Protocol, Sequence

from core.settings import DEFAULT_NAMESPACE
from splitviewer.services.filter_config import (
    AMBIGUITY,
    DISTANCE,
    EDGE_CORRECTION,
    INTENSITY,
    ISOLATED_PIXEL,
    REMISSION,
    FilterConfigModel,
)


class EndpointRegistry(Protocol):
    def serve_function(self, name: str, fn: Callable[..., Any]) -> None:
        ...


class FunctionRegistry:
    """In-process registry of callable endpoints keyed by qualified name."""

    def __init__(self):
        self._functions: dict[str, Callable[..., Any]] = {}
        self._lock = threading.Lock()

    def serve_function(self, name: str, fn: Callable[..., Any]) -> None:
        with self._lock:
            if name in self._functions:
                raise ValueError(f"endpoint {name!r} already served")
            self._functions[name] = fn

    def call(self, name: str, *args: Any) -> Any:
        with self._lock:
            fn = self._functions.get(name)
        if fn is None:
            raise KeyError(f"no endpoint named {name!r}")
        return fn(*args)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._functions)


class RemoteControlSurface:
    def __init__(
        self,
        model: FilterConfigModel,
        registry: EndpointRegistry,
        namespace: str = DEFAULT_NAMESPACE,
    ):
        self.model = model
        self.registry = registry
        self.namespace = namespace

    def endpoints(self) -> dict[str, Callable[..., Any]]:
        """Operation name -> callable, in registration order."""
        model = self.model
        return {
            "setFramePeriod": model.set_frame_period_ms,
            "getFramePeriod": model.get_frame_period_ms,
            "getDistanceFilterEnabled": partial(model.is_enabled, DISTANCE),
            "setDistanceFilterEnabled": partial(model.set_enabled, DISTANCE),
            "setDistanceFilterRange": partial(self._set_range, DISTANCE),
            "getDistanceFilterRange": partial(self._get_range, DISTANCE),
            "getIntensityFilterEnabled": partial(model.is_enabled, INTENSITY),
            "getIntensityFilterRange": partial(self._get_range, INTENSITY),
            "setIntensityFilterEnabled": partial(model.set_enabled, INTENSITY),
            "setIntensityFilterRange": partial(self._set_range, INTENSITY),
            "getIsoPixFilter": partial(model.is_enabled, ISOLATED_PIXEL),
            "getIsoPixValue": partial(model.get_value, ISOLATED_PIXEL),
            "setIsoPixFilterEnabled": partial(model.set_enabled, ISOLATED_PIXEL),
            "setIsoPixFilterValue": model.set_isolated_pixel_value,
            "getAmbiguityFilterEnabled": partial(model.is_enabled, AMBIGUITY),
            "getAmbiguityFilterValue": partial(model.get_value, AMBIGUITY),
            "setAmbiguityFilterEnabled": partial(model.set_enabled, AMBIGUITY),
            "setAmbiguityFilter": partial(model.set_value, AMBIGUITY),
            "getRemissionFilterEnabled": partial(model.is_enabled, REMISSION),
            # Misspelled name kept for existing remote callers.
            "getRemisssionFilterEnabled": partial(model.is_enabled, REMISSION),
            "getRemissionFilterRange": partial(self._get_range, REMISSION),
            "setRemissionFilterEnabled": partial(model.set_enabled, REMISSION),
            "setRemissionFilterRange": partial(self._set_range, REMISSION),
            "getEdgeCorrectionEnabled": model.get_edge_correction,
            "setEdgeCorrectionEnabled": partial(model.set_enabled, EDGE_CORRECTION),
        }

    def register_all(self) -> list[str]:
        served = []
        for operation, fn in self.endpoints().items():
            name = f"{self.namespace}.{operation}"
            self.registry.serve_function(name, fn)
            served.append(name)
        logging.info("[REMOTE] served %d endpoints under %s", len(served), self.namespace)
        return served

    def _get_range(self, field: str) -> list[float]:
        minimum, maximum = self.model.get_range(field)
        return [minimum, maximum]

    def _set_range(self, field: str, range_: Sequence[float]) -> None:
        minimum, maximum = range_
        self.model.set_range(field, minimum, maximum)
