import io
import json
import tempfile
import unittest
from contextlib import contextmanager, redirect_stdout
from pathlib import Path
from unittest.mock import patch

from fake_playlist import FakePlaylistHost
from playsort.cli import _build_parser, build_config, logs_command, main, run_repeated, sort_command
from playsort.config import SortConfig
from playsort.controller import SortController

PLAYLIST_URL = "https://www.youtube.com/playlist?list=PL123"


class BuildConfigTests(unittest.TestCase):
    def test_flags_map_onto_config(self) -> None:
        args = _build_parser().parse_args(
            [
                "sort",
                PLAYLIST_URL,
                "--key",
                "channel",
                "--direction",
                "desc",
                "--only-loaded",
                "--scroll-delay-ms",
                "900",
                "--post-move-delay-ms",
                "2500",
                "--repeat-interval",
                "3600",
            ]
        )
        with patch.dict("os.environ", {}, clear=True):
            cfg = build_config(args)
        self.assertEqual(cfg.key_kind, "channel")
        self.assertEqual(cfg.direction, "desc")
        self.assertFalse(cfg.auto_load)
        self.assertEqual(cfg.scroll_delay_ms, 900)
        self.assertEqual(cfg.post_move_delay_ms, 2500)
        self.assertEqual(cfg.repeat_interval_s, 3600)

    def test_defaults_keep_auto_load(self) -> None:
        args = _build_parser().parse_args(["sort", PLAYLIST_URL])
        with patch.dict("os.environ", {}, clear=True):
            self.assertTrue(build_config(args).auto_load)

    def test_negative_delay_is_rejected(self) -> None:
        args = _build_parser().parse_args(["sort", PLAYLIST_URL, "--scroll-delay-ms", "-4"])
        with self.assertRaises(SystemExit):
            build_config(args)

    def test_browser_options_are_mutually_exclusive(self) -> None:
        with redirect_stdout(io.StringIO()), patch("sys.stderr", io.StringIO()):
            with self.assertRaises(SystemExit):
                _build_parser().parse_args(["sort", PLAYLIST_URL, "--cdp-port", "9222", "--user-data-dir", "/tmp/p"])


class SortCommandTests(unittest.TestCase):
    def test_non_playlist_url_is_rejected(self) -> None:
        args = _build_parser().parse_args(["sort", "https://www.youtube.com/watch?v=abc"])
        with self.assertRaises(SystemExit):
            sort_command(args)

    def test_missing_playwright_is_reported(self) -> None:
        args = _build_parser().parse_args(["sort", PLAYLIST_URL])
        with patch("playsort.cli.playwright_available", return_value=False):
            with self.assertRaises(SystemExit) as ctx:
                sort_command(args)
        self.assertIn("Playwright", str(ctx.exception))

    def test_sort_writes_report_and_status(self) -> None:
        host = FakePlaylistHost(["3:00", "1:00", "2:00"])

        @contextmanager
        def fake_open(url, **_kwargs):
            yield object()

        with tempfile.TemporaryDirectory() as tmp:
            runs_dir = Path(tmp) / "runs"
            status_path = runs_dir / "status.json"
            args = _build_parser().parse_args(["sort", PLAYLIST_URL, "--cdp-port", "9222"])
            out = io.StringIO()
            with patch("playsort.storage.RUNS_DIR", runs_dir), patch(
                "playsort.storage.STATUS_PATH", status_path
            ), patch("playsort.cli.playwright_available", return_value=True), patch(
                "playsort.cli.open_playlist_page", side_effect=fake_open
            ) as open_mock, patch(
                "playsort.cli.PlaywrightHost", return_value=host
            ), patch.dict("os.environ", {}, clear=True), redirect_stdout(out):
                sort_command(args)
            self.assertEqual(open_mock.call_args.kwargs["cdp_port"], 9222)
            self.assertEqual(host.durations(), ["1:00", "2:00", "3:00"])
            status = json.loads(status_path.read_text(encoding="utf-8"))
            self.assertEqual(status["result"], "converged")
            self.assertEqual(status["moves"], 2)
            report_path = Path(status["run_dir"]) / "report.json"
            report = json.loads(report_path.read_text(encoding="utf-8"))
            self.assertEqual(report["result"], "converged")
            self.assertEqual(report["runs"][0]["moves"], 2)
            self.assertIn("Sort complete", out.getvalue())

    def test_failed_sort_marks_status_failed(self) -> None:
        host = FakePlaylistHost(["3:00", "1:00"])
        host.is_playlist_page = lambda: False

        @contextmanager
        def fake_open(url, **_kwargs):
            yield object()

        with tempfile.TemporaryDirectory() as tmp:
            runs_dir = Path(tmp) / "runs"
            status_path = runs_dir / "status.json"
            args = _build_parser().parse_args(["sort", PLAYLIST_URL])
            with patch("playsort.storage.RUNS_DIR", runs_dir), patch(
                "playsort.storage.STATUS_PATH", status_path
            ), patch("playsort.cli.playwright_available", return_value=True), patch(
                "playsort.cli.open_playlist_page", side_effect=fake_open
            ), patch(
                "playsort.cli.PlaywrightHost", return_value=host
            ), patch.dict("os.environ", {}, clear=True), redirect_stdout(io.StringIO()):
                with self.assertRaises(SystemExit):
                    sort_command(args)
            status = json.loads(status_path.read_text(encoding="utf-8"))
            self.assertEqual(status["state"], "failed")
            self.assertEqual(status["result"], "failed")
            report = json.loads((Path(status["run_dir"]) / "report.json").read_text(encoding="utf-8"))
            self.assertEqual(report["result"], "failed")
            self.assertIn("playlist page", report["error"])
            self.assertEqual(host.gestures, [])


class RepeatTests(unittest.TestCase):
    def test_single_run_without_interval(self) -> None:
        host = FakePlaylistHost(["2:00", "1:00"])
        controller = SortController(host, SortConfig(post_move_delay_ms=1))
        outcomes = run_repeated(controller)
        self.assertEqual(len(outcomes), 1)

    def test_repeats_until_cancelled_between_runs(self) -> None:
        host = FakePlaylistHost(["2:00", "1:00"])
        controller = SortController(host, SortConfig(post_move_delay_ms=1, repeat_interval_s=3600))
        waits = iter([False, True])
        with patch.object(controller, "wait_for_cancel", side_effect=lambda _s: next(waits)):
            outcomes = run_repeated(controller)
        self.assertEqual(len(outcomes), 2)
        self.assertEqual(outcomes[0].moves, 1)
        self.assertEqual(outcomes[1].moves, 0)
        self.assertEqual(controller.sink.current, "Sort cancelled.")


class StatusAndLogsTests(unittest.TestCase):
    def test_logs_print_tail_of_sort_log(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            run_dir = Path(tmp) / "runs" / "r1"
            run_dir.mkdir(parents=True)
            (run_dir / "sort.log").write_text("first\nsecond\nthird\n", encoding="utf-8")
            with patch("playsort.cli.status_payload", return_value={"run_dir": str(run_dir)}):
                out = io.StringIO()
                with redirect_stdout(out):
                    logs_command(2)
            self.assertEqual(out.getvalue().split(), ["second", "third"])

    def test_logs_without_runs(self) -> None:
        with patch("playsort.cli.status_payload", return_value={"status": "no-runs"}):
            with self.assertRaises(SystemExit):
                logs_command(10)

    def test_status_command_prints_json(self) -> None:
        with patch("playsort.cli.status_payload", return_value={"state": "sorting", "moves": 3}):
            out = io.StringIO()
            with redirect_stdout(out):
                main(["status"])
        self.assertEqual(json.loads(out.getvalue())["moves"], 3)


if __name__ == "__main__":
    unittest.main()
