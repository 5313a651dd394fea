"""
Unit tests for view layers and layer groups (gui.view_layer, gui.layer_group).

Tests event relaying with the data index, opacity, drawing, zoom/offset
state and the fit scale computation. Does not require Qt.
Runnable with pytest or unittest.
"""

import unittest
import sys
import os

import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from core.coordinates import Point
from core.geometry import Geometry
from core.image import Image
from core.view import View
from gui.layer_group import LayerGroup


def make_view(columns=4, rows=3, slices=2, spacing=(1.0, 1.0, 1.0)):
    buffer = np.arange(columns * rows * slices, dtype=np.uint16).reshape(slices, rows, columns)
    origins = [Point([0.0, 0.0, k * spacing[2]]) for k in range(slices)]
    view = View(Image(Geometry(origins, [columns, rows, slices], list(spacing)), buffer))
    view.init()
    return view


class TestViewLayer(unittest.TestCase):
    """Tests for ViewLayer."""

    def setUp(self):
        self.group = LayerGroup("layerGroup0")
        self.view = make_view()
        self.layer = self.group.add_view_layer(self.view, 3)

    def test_relayed_events_carry_data_index(self):
        events = []
        self.layer.add_event_listener("wlchange", events.append)
        self.view.set_window_level(40, 400)
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0]["dataindex"], 3)
        self.assertEqual(events[0]["value"], [40.0, 400.0])

    def test_opacity_clamped_and_fired_on_change(self):
        events = []
        self.layer.add_event_listener("opacitychange", events.append)
        self.layer.set_opacity(1.5)
        self.assertEqual(self.layer.get_opacity(), 1.0)
        self.assertEqual(len(events), 0)
        self.layer.set_opacity(0.25)
        self.assertEqual(self.layer.get_opacity(), 0.25)
        self.assertEqual(events, [{"type": "opacitychange", "value": 0.25, "dataindex": 3}])

    def test_draw_generates_rgba(self):
        self.layer.draw()
        data = self.layer.get_image_data()
        self.assertEqual(data.shape, (3, 4, 4))
        self.assertEqual(data.dtype, np.uint8)
        # minmax window: first sample is the data minimum
        self.assertEqual(data[0, 0].tolist(), [0, 0, 0, 255])

    def test_detach_stops_relay(self):
        events = []
        self.layer.add_event_listener("wlchange", events.append)
        self.layer.detach()
        self.view.set_window_level(40, 400)
        self.assertEqual(events, [])


class TestLayerGroup(unittest.TestCase):
    """Tests for LayerGroup."""

    def setUp(self):
        self.group = LayerGroup("layerGroup0")

    def test_layer_events_are_relayed(self):
        view = make_view()
        self.group.add_view_layer(view, 0)
        events = []
        self.group.add_event_listener("positionchange", events.append)
        view.increment_scroll_index()
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0]["dataindex"], 0)

    def test_active_layer_and_lookup(self):
        self.assertIsNone(self.group.get_active_view_layer())
        first = self.group.add_view_layer(make_view(), 0)
        second = self.group.add_view_layer(make_view(), 1)
        self.assertIs(self.group.get_active_view_layer(), second)
        self.group.set_active_view_layer(0)
        self.assertIs(self.group.get_active_view_layer(), first)
        self.assertEqual(self.group.get_view_layers_by_data_index(1), [second])
        self.assertEqual(self.group.get_view_layers_by_data_index(7), [])
        with self.assertRaises(ValueError):
            self.group.set_active_view_layer(2)

    def test_fit_scale(self):
        self.assertIsNone(self.group.calculate_fit_scale())
        self.group.add_view_layer(make_view(spacing=(0.5, 0.5, 1.0)), 0)
        self.assertIsNone(self.group.calculate_fit_scale())
        # image is 2 x 1.5 mm
        self.group.set_container_size(100, 60)
        self.assertEqual(self.group.calculate_fit_scale(), 40.0)

    def test_scale_with_center_keeps_point_fixed(self):
        self.group.set_fit_scale(2.0)
        self.group.set_scale({"x": 2.0, "y": 2.0}, {"x": 10.0, "y": 4.0})
        self.assertEqual(self.group.get_offset(), {"x": 5.0, "y": 2.0, "z": 0.0})
        self.assertEqual(self.group.get_scale(), {"x": 4.0, "y": 4.0, "z": 2.0})

    def test_add_scale_fires_zoomchange(self):
        events = []
        self.group.add_event_listener("zoomchange", events.append)
        self.group.add_scale(0.5)
        self.assertEqual(events[0]["value"], [1.5, 1.5, 1.5])
        self.group.add_scale(1.0, {"x": 1.0, "y": 2.0})
        self.assertEqual(events[1]["value"], [3.0, 3.0, 3.0, 1.0, 2.0, 0.0])

    def test_add_translation_fires_offsetchange(self):
        events = []
        self.group.add_event_listener("offsetchange", events.append)
        self.group.add_translation({"x": 3.0, "y": -1.0})
        self.assertEqual(events[0]["value"], [3.0, -1.0, 0.0])

    def test_reset_and_empty(self):
        self.group.add_view_layer(make_view(), 0)
        self.group.add_translation({"x": 3.0})
        self.group.add_scale(1.0)
        self.group.reset()
        self.assertEqual(self.group.get_added_scale(), {"x": 1.0, "y": 1.0, "z": 1.0})
        self.assertEqual(self.group.get_offset(), {"x": 0.0, "y": 0.0, "z": 0.0})
        self.group.empty()
        self.assertEqual(self.group.get_number_of_view_layers(), 0)
        self.assertIsNone(self.group.get_active_view_layer())

    def test_draw_counts(self):
        self.group.add_view_layer(make_view(), 0)
        self.group.draw()
        self.assertEqual(self.group.get_draw_count(), 1)
        self.assertIsNotNone(self.group.get_active_view_layer().get_image_data())


if __name__ == "__main__":
    unittest.main()
