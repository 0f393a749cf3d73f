"""Frame router tests: sink fan-out, failure isolation, and at-most-one-pending delivery."""
import unittest

from fakes import STARTUP_BINNING, STARTUP_ROI, RecordingSink, make_frame, wait_until

from splitviewer.services.camera_device import CameraModel
from splitviewer.services.capture_config import Binning
from splitviewer.services.frame_bus import FrameQueue, OverflowPolicy
from splitviewer.services.frame_router import FrameRouter
from splitviewer.services.simulated_camera import VISIONARY_T_MINI


class FrameRouterTests(unittest.TestCase):
    def setUp(self):
        self.log = []
        self.sink_2d = RecordingSink("2d", self.log)
        self.sink_3d = RecordingSink("3d", self.log)
        self.model = CameraModel.derive(VISIONARY_T_MINI, STARTUP_ROI, STARTUP_BINNING)
        self.router = FrameRouter([self.sink_2d, self.sink_3d], model_source=lambda: self.model)
        self.addCleanup(self.router.stop)

    def test_dispatch_visits_sinks_in_order(self):
        frame = make_frame()
        self.assertTrue(self.router.dispatch(frame))
        self.assertEqual(
            self.log,
            [
                ("2d", "clear"),
                ("2d", "add_depthmap"),
                ("2d", "present"),
                ("3d", "clear"),
                ("3d", "add_depthmap"),
                ("3d", "present"),
            ],
        )
        delivered_frame, model, planes = self.sink_3d.frames[0]
        self.assertIs(delivered_frame, frame)
        self.assertIs(model, self.model)
        self.assertEqual(planes, ("Depth", "Intensity"))

    def test_failing_sink_does_not_block_next_sink(self):
        broken = RecordingSink("broken", self.log, fail_on="add_depthmap")
        router = FrameRouter([broken, self.sink_3d], model_source=lambda: self.model)

        with self.assertLogs(level="ERROR"):
            self.assertTrue(router.dispatch(make_frame()))

        self.assertEqual(
            [entry for entry in self.log if entry[0] == "3d"],
            [("3d", "clear"), ("3d", "add_depthmap"), ("3d", "present")],
        )
        self.assertEqual(router.sink_failures, 1)
        self.assertEqual(router.delivered, 1)

    def test_two_notifications_before_drain_deliver_one_frame(self):
        first = make_frame(fill=1000.0)
        second = make_frame(fill=1500.0)
        self.router.on_new_image(first)
        self.router.on_new_image(second)

        self.assertTrue(self.router.process_pending())
        self.assertFalse(self.router.process_pending())

        self.assertEqual(len(self.sink_2d.frames), 1)
        self.assertIs(self.sink_2d.frames[0][0], second)
        self.assertEqual(self.router.metrics()["dropped"], 1)

    def test_drop_newest_policy_keeps_first_frame(self):
        router = FrameRouter(
            [self.sink_2d],
            model_source=lambda: self.model,
            queue=FrameQueue(maxlen=1, policy=OverflowPolicy.DROP_NEWEST),
        )
        first = make_frame()
        router.on_new_image(first)
        router.on_new_image(make_frame())
        router.process_pending()
        self.assertEqual([f for f, _, _ in self.sink_2d.frames], [first])

    def test_frame_from_other_geometry_is_dropped(self):
        frame = make_frame(binning=Binning.uniform(2))
        with self.assertLogs(level="WARNING"):
            self.assertFalse(self.router.dispatch(frame))
        self.assertEqual(self.log, [])
        self.assertEqual(self.router.stale_frames, 1)

    def test_frame_without_model_is_dropped(self):
        router = FrameRouter([self.sink_2d], model_source=lambda: None)
        with self.assertLogs(level="WARNING"):
            self.assertFalse(router.dispatch(make_frame()))
        self.assertEqual(self.sink_2d.frames, [])

    def test_model_swap_is_observed_on_next_dispatch(self):
        self.router.dispatch(make_frame())
        new_model = CameraModel.derive(VISIONARY_T_MINI, STARTUP_ROI, Binning.uniform(2))
        self.model = new_model
        self.router.dispatch(make_frame(binning=Binning.uniform(2)))
        self.assertIs(self.sink_2d.frames[-1][1], new_model)

    def test_background_thread_dispatches(self):
        self.router.start()
        self.assertTrue(self.router.is_running())
        self.router.on_new_image(make_frame())
        self.assertTrue(wait_until(lambda: self.router.delivered == 1))
        self.router.stop()
        self.assertFalse(self.router.is_running())

    def test_metrics_payload(self):
        self.router.dispatch(make_frame())
        metrics = self.router.metrics()
        self.assertEqual(metrics["delivered"], 1)
        self.assertEqual(metrics["stale"], 0)
        self.assertEqual(metrics["sink_failures"], 0)
        self.assertEqual(metrics["queue_fill"], 0)
