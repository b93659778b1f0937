import unittest

from fake_playlist import FakePlaylistHost
from playsort.gesture import StaleReferenceError, box_center, gesture_plan, simulate_move


class GesturePlanTests(unittest.TestCase):
    def test_event_order_matches_native_drag(self) -> None:
        plan = gesture_plan((10, 20), (10, 220))
        self.assertEqual(
            [(step["target"], step["type"]) for step in plan],
            [
                ("drag", "mousemove"),
                ("drag", "mouseenter"),
                ("drag", "mouseover"),
                ("drag", "mousedown"),
                ("drag", "dragstart"),
                ("drag", "drag"),
                ("drag", "mousemove"),
                ("drag", "drag"),
                ("drop", "mousemove"),
                ("drop", "mouseenter"),
                ("drop", "dragenter"),
                ("drop", "mouseover"),
                ("drop", "dragover"),
                ("drop", "drop"),
                ("drag", "dragend"),
                ("drag", "mouseup"),
            ],
        )
        # everything from the second drag on happens at the destination
        self.assertEqual([step["y"] for step in plan], [20] * 7 + [220] * 9)

    def test_source_and_destination_coordinates(self) -> None:
        plan = gesture_plan((10, 20), (30, 240))
        by_type = {step["type"]: step for step in plan}
        self.assertEqual((by_type["mousedown"]["x"], by_type["mousedown"]["y"]), (10, 20))
        self.assertEqual(by_type["mousedown"]["target"], "drag")
        self.assertEqual((by_type["drop"]["x"], by_type["drop"]["y"]), (30, 240))
        self.assertEqual(by_type["drop"]["target"], "drop")
        self.assertEqual(by_type["dragend"]["target"], "drag")
        drag_moves = [step for step in plan if step["type"] == "drag"]
        self.assertEqual([(s["x"], s["y"]) for s in drag_moves], [(10, 20), (30, 240)])

    def test_box_center_floors_and_rejects_degenerate_boxes(self) -> None:
        self.assertEqual(box_center({"left": 0, "right": 5, "top": 0, "bottom": 5}), (2, 2))
        self.assertIsNone(box_center({"left": 0, "right": 0, "top": 0, "bottom": 0}))
        self.assertIsNone(box_center(None))
        self.assertIsNone(box_center({"left": 1}))


class SimulateMoveTests(unittest.TestCase):
    def test_dispatches_one_gesture_and_reveals_drop_target(self) -> None:
        host = FakePlaylistHost(["3:00", "1:00", "2:00"])
        simulate_move(host, 1, 0)
        self.assertEqual(len(host.gestures), 1)
        drag, drop, plan = host.gestures[0]
        self.assertEqual((drag, drop), (1, 0))
        self.assertEqual(plan[0]["x"], 22)
        self.assertEqual(host.durations(), ["1:00", "3:00", "2:00"])
        self.assertEqual(host.revealed, [0])

    def test_detached_handle_raises_stale_reference(self) -> None:
        host = FakePlaylistHost(["3:00", "1:00"])
        host.stale_once.add(1)
        with self.assertRaises(StaleReferenceError):
            simulate_move(host, 1, 0)
        self.assertEqual(host.gestures, [])

    def test_out_of_range_index_raises_stale_reference(self) -> None:
        host = FakePlaylistHost(["3:00", "1:00"])
        with self.assertRaises(StaleReferenceError):
            simulate_move(host, 5, 0)

    def test_vanished_rows_at_dispatch_raise_stale_reference(self) -> None:
        host = FakePlaylistHost(["3:00", "1:00"])
        host.dispatch_gesture = lambda *_args: False
        with self.assertRaises(StaleReferenceError):
            simulate_move(host, 1, 0)


if __name__ == "__main__":
    unittest.main()
