"""Runtime wiring of device, session, router, filters, and remote surface."""
from __future__ import annotations

from dataclasses import dataclass

from core.settings import StartupSettings
from splitviewer.services.camera_device import CameraModel, DeviceProvider
from splitviewer.services.capture_config import Binning, Roi
from splitviewer.services.capture_session import CaptureSession
from splitviewer.services.config_access import ConfigAccess
from splitviewer.services.filter_config import FilterConfigModel, IsoPixTarget
from splitviewer.services.frame_router import FrameRouter
from splitviewer.services.remote_surface import FunctionRegistry, RemoteControlSurface
from splitviewer.services.simulated_camera import SimulatedCamera


@dataclass
class ViewerRuntime:
    provider: DeviceProvider
    session: CaptureSession
    router: FrameRouter
    filters: FilterConfigModel
    registry: FunctionRegistry

    def shutdown(self) -> None:
        try:
            self.session.stop()
        finally:
            self.router.stop()


def build_runtime(settings: StartupSettings, sinks, provider: DeviceProvider | None = None) -> ViewerRuntime:
    provider = provider or SimulatedCamera()
    access = ConfigAccess(provider)
    session = CaptureSession(provider, access)
    router = FrameRouter(sinks, model_source=lambda: session.camera_model)
    session.add_frame_handler(router.on_new_image)

    filters = FilterConfigModel(access, iso_pixel_target=IsoPixTarget(settings.iso_pixel_target))
    registry = FunctionRegistry()
    RemoteControlSurface(filters, registry, settings.namespace).register_all()
    return ViewerRuntime(provider=provider, session=session, router=router, filters=filters, registry=registry)


def startup_geometry(settings: StartupSettings) -> tuple[Roi, Binning]:
    x, y, width, height = settings.roi
    return Roi(enabled=True, x=x, y=y, width=width, height=height), Binning.uniform(settings.binning)


def on_started(runtime: ViewerRuntime, settings: StartupSettings) -> CameraModel:
    """Startup hook: configure the device once, then begin routing frames.

    The router thread starts only once the session is RUNNING; frames arriving
    in between wait in its queue.
    """
    roi, binning = startup_geometry(settings)
    model = runtime.session.start(roi, binning, settings.frame_period_us)
    runtime.router.start()
    return model
