import unittest

from playsort.keys import channel_key, duration_key
from playsort.ordering import compare, count_misplaced, first_misplaced, occupant_for, rank_items


def _order(keys, direction):
    ranked = rank_items(keys, direction)
    return [item.current_position for item in sorted(ranked, key=lambda item: item.desired_position)]


class CompareTests(unittest.TestCase):
    def test_duration_ascending_and_descending(self) -> None:
        short, long = duration_key("1:00"), duration_key("2:00")
        self.assertEqual(compare(short, long, "asc"), -1)
        self.assertEqual(compare(short, long, "desc"), 1)
        self.assertEqual(compare(short, duration_key("01:00"), "asc"), 0)

    def test_sentinel_sorts_last_in_both_directions(self) -> None:
        upcoming = duration_key("Upcoming")
        for text in ("0:00", "1:00", "99:59:59"):
            real = duration_key(text)
            for direction in ("asc", "desc"):
                self.assertEqual(compare(upcoming, real, direction), 1, (text, direction))
                self.assertEqual(compare(real, upcoming, direction), -1, (text, direction))

    def test_two_sentinels_compare_equal(self) -> None:
        self.assertEqual(compare(duration_key("Upcoming"), duration_key("LIVE"), "desc"), 0)

    def test_channel_comparison_is_case_insensitive(self) -> None:
        self.assertEqual(compare(channel_key("alpha"), channel_key("Bravo"), "asc"), -1)
        self.assertEqual(compare(channel_key("alpha"), channel_key("Bravo"), "desc"), 1)
        self.assertEqual(compare(channel_key("BRAVO"), channel_key("bravo"), "desc"), 0)


class RankTests(unittest.TestCase):
    def test_upcoming_sinks_to_bottom_in_both_directions(self) -> None:
        keys = [duration_key(t) for t in ("Upcoming", "2:00", "1:00")]
        self.assertEqual(_order(keys, "asc"), [2, 1, 0])
        self.assertEqual(_order(keys, "desc"), [1, 2, 0])

    def test_equal_keys_keep_input_order(self) -> None:
        keys = [channel_key(t) for t in ("Bravo", "alpha", "Bravo", "bravo")]
        self.assertEqual(_order(keys, "asc"), [1, 0, 2, 3])
        self.assertEqual(_order(keys, "desc"), [0, 2, 3, 1])

    def test_equal_durations_keep_input_order(self) -> None:
        keys = [duration_key(t) for t in ("2:00", "1:00", "2:00", "1:00")]
        self.assertEqual(_order(keys, "asc"), [1, 3, 0, 2])

    def test_desired_positions_are_a_permutation(self) -> None:
        keys = [duration_key(t) for t in ("3:00", "Upcoming", "1:00", "1:00", "0:30")]
        ranked = rank_items(keys, "desc")
        self.assertEqual(sorted(item.desired_position for item in ranked), list(range(5)))
        self.assertEqual([item.current_position for item in ranked], list(range(5)))

    def test_first_misplaced_and_occupant(self) -> None:
        ranked = rank_items([duration_key(t) for t in ("1:00", "3:00", "2:00")], "asc")
        self.assertEqual(first_misplaced(ranked), 1)
        self.assertEqual(occupant_for(ranked, 1).current_position, 2)
        self.assertEqual(count_misplaced(ranked), 2)
        self.assertIsNone(first_misplaced(ranked, start=3))

    def test_sorted_input_has_nothing_misplaced(self) -> None:
        ranked = rank_items([duration_key(t) for t in ("1:00", "2:00", "Upcoming")], "asc")
        self.assertIsNone(first_misplaced(ranked))

    def test_ranking_a_tail_offsets_positions_and_ranks(self) -> None:
        tail = [duration_key(t) for t in ("3:00", "2:00")]
        ranked = rank_items(tail, "asc", start=2)
        self.assertEqual([item.current_position for item in ranked], [2, 3])
        self.assertEqual([item.desired_position for item in ranked], [3, 2])
        self.assertEqual(first_misplaced(ranked), 2)
        self.assertEqual(occupant_for(ranked, 2).current_position, 3)


if __name__ == "__main__":
    unittest.main()
