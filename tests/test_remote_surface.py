import unittest
from unittest.mock import Mock

from fakes import ManualCamera, RejectingCamera

from core.settings import DEFAULT_NAMESPACE
from splitviewer.services.camera_device import ConfigurationRejected, InvalidParameter
from splitviewer.services.config_access import ConfigAccess
from splitviewer.services.filter_config import FilterConfigModel
from splitviewer.services.remote_surface import FunctionRegistry, RemoteControlSurface

OPERATIONS = (
    "setFramePeriod",
    "getFramePeriod",
    "getDistanceFilterEnabled",
    "setDistanceFilterEnabled",
    "setDistanceFilterRange",
    "getDistanceFilterRange",
    "getIntensityFilterEnabled",
    "getIntensityFilterRange",
    "setIntensityFilterEnabled",
    "setIntensityFilterRange",
    "getIsoPixFilter",
    "getIsoPixValue",
    "setIsoPixFilterEnabled",
    "setIsoPixFilterValue",
    "getAmbiguityFilterEnabled",
    "getAmbiguityFilterValue",
    "setAmbiguityFilterEnabled",
    "setAmbiguityFilter",
    "getRemissionFilterEnabled",
    "getRemisssionFilterEnabled",
    "getRemissionFilterRange",
    "setRemissionFilterEnabled",
    "setRemissionFilterRange",
    "getEdgeCorrectionEnabled",
    "setEdgeCorrectionEnabled",
)


def _qualified(operation):
    return f"{DEFAULT_NAMESPACE}.{operation}"


class RemoteControlSurfaceTests(unittest.TestCase):
    def setUp(self):
        self.camera = ManualCamera()
        self.registry = FunctionRegistry()
        self.surface = RemoteControlSurface(FilterConfigModel(ConfigAccess(self.camera)), self.registry)
        self.served = self.surface.register_all()

    def call(self, operation, *args):
        return self.registry.call(_qualified(operation), *args)

    def test_every_operation_is_served_under_namespace(self):
        self.assertEqual(self.served, [_qualified(op) for op in OPERATIONS])
        self.assertEqual(self.registry.names(), sorted(self.served))

    def test_registration_goes_through_registry_protocol(self):
        registry = Mock()
        RemoteControlSurface(FilterConfigModel(ConfigAccess(self.camera)), registry, "Custom").register_all()
        self.assertEqual(registry.serve_function.call_count, len(OPERATIONS))
        first_name, _ = registry.serve_function.call_args_list[0].args
        self.assertEqual(first_name, "Custom.setFramePeriod")

    def test_frame_period_in_milliseconds(self):
        self.call("setFramePeriod", 30)
        self.assertEqual(self.camera.get_config().frame_period_us, 30000)
        self.assertEqual(self.call("getFramePeriod"), 30.0)

    def test_range_endpoints_take_and_return_pairs(self):
        self.call("setDistanceFilterRange", [400, 1800])
        self.assertEqual(self.call("getDistanceFilterRange"), [400.0, 1800.0])
        self.assertTrue(self.call("getDistanceFilterEnabled"))

    def test_intensity_range_round_trips_in_db(self):
        self.call("setIntensityFilterRange", (-20.0, 0.0))
        low, high = self.call("getIntensityFilterRange")
        self.assertAlmostEqual(low, -20.0, places=9)
        self.assertAlmostEqual(high, 0.0, places=9)
        self.assertAlmostEqual(self.camera.get_config().intensity_filter.min, 0.1, places=12)

    def test_both_remission_enabled_spellings(self):
        self.call("setRemissionFilterEnabled", True)
        self.assertTrue(self.call("getRemissionFilterEnabled"))
        self.assertTrue(self.call("getRemisssionFilterEnabled"))

    def test_iso_pixel_endpoints(self):
        self.call("setIsoPixFilterValue", 9.0)
        self.assertTrue(self.call("getIsoPixFilter"))
        self.assertEqual(self.call("getIsoPixValue"), 9.0)
        self.call("setIsoPixFilterEnabled", False)
        self.assertFalse(self.call("getIsoPixFilter"))

    def test_ambiguity_and_edge_correction(self):
        self.call("setAmbiguityFilter", 0.8)
        self.assertTrue(self.call("getAmbiguityFilterEnabled"))
        self.assertEqual(self.call("getAmbiguityFilterValue"), 0.8)
        self.call("setEdgeCorrectionEnabled", False)
        self.assertFalse(self.call("getEdgeCorrectionEnabled"))

    def test_invalid_parameters_propagate(self):
        with self.assertRaises(InvalidParameter):
            self.call("setFramePeriod", -1)
        with self.assertRaises(InvalidParameter):
            self.call("setRemissionFilterRange", [90, 10])

    def test_malformed_range_argument(self):
        with self.assertRaises(ValueError):
            self.call("setDistanceFilterRange", [1, 2, 3])

    def test_device_rejection_propagates(self):
        registry = FunctionRegistry()
        RemoteControlSurface(FilterConfigModel(ConfigAccess(RejectingCamera())), registry).register_all()
        with self.assertRaises(ConfigurationRejected):
            registry.call(_qualified("setAmbiguityFilterEnabled"), True)

    def test_duplicate_registration_rejected(self):
        with self.assertRaises(ValueError):
            self.surface.register_all()

    def test_unknown_endpoint(self):
        with self.assertRaises(KeyError):
            self.registry.call("Nope.getFramePeriod")
