import subprocess
import unittest
from pathlib import Path
from unittest import mock


def _done(code: int = 0, out: str = "", err: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=["tmux"], returncode=code, stdout=out, stderr=err)


class TestTmuxRunner(unittest.TestCase):
    def test_pane_alive(self) -> None:
        from agent_doc.runners.tmux import Tmux

        tmux = Tmux()
        with mock.patch("agent_doc.runners.tmux.subprocess.run", return_value=_done(0, "%1\n%12\n")) as run:
            self.assertTrue(tmux.pane_alive("%12"))
            self.assertFalse(tmux.pane_alive("%2"))
            self.assertFalse(tmux.pane_alive(""))
        self.assertEqual(run.call_count, 2)
        self.assertEqual(run.call_args[0][0], ["tmux", "list-panes", "-a", "-F", "#{pane_id}"])

    def test_pane_alive_is_false_when_tmux_fails(self) -> None:
        from agent_doc.runners.tmux import Tmux

        with mock.patch("agent_doc.runners.tmux.subprocess.run", return_value=_done(1, "", "no server running")):
            self.assertFalse(Tmux().pane_alive("%1"))
        with mock.patch("agent_doc.runners.tmux.subprocess.run", side_effect=FileNotFoundError("tmux")):
            self.assertFalse(Tmux().pane_alive("%1"))
        with mock.patch(
            "agent_doc.runners.tmux.subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="tmux", timeout=5)
        ):
            self.assertFalse(Tmux().pane_alive("%1"))

    def test_socket_isolates_server(self) -> None:
        from agent_doc.runners.tmux import Tmux

        with mock.patch("agent_doc.runners.tmux.subprocess.run", return_value=_done(0)) as run:
            Tmux(socket="agent-doc-test").running()
        self.assertEqual(run.call_args[0][0][:5], ["tmux", "-L", "agent-doc-test", "-f", "/dev/null"])

    def test_select_pane_selects_window_first(self) -> None:
        from agent_doc.runners.tmux import Tmux

        with mock.patch("agent_doc.runners.tmux.subprocess.run", return_value=_done(0)) as run:
            Tmux().select_pane("%3")
        argv = [c[0][0] for c in run.call_args_list]
        self.assertEqual(argv, [["tmux", "select-window", "-t", "%3"], ["tmux", "select-pane", "-t", "%3"]])

    def test_send_keys_sends_literal_text_then_enter(self) -> None:
        from agent_doc.runners.tmux import Tmux

        with mock.patch("agent_doc.runners.tmux.subprocess.run", return_value=_done(0)) as run, mock.patch(
            "agent_doc.runners.tmux.time.sleep"
        ) as sleep:
            Tmux().send_keys("%1", "/agent-doc notes.md")
        argv = [c[0][0] for c in run.call_args_list]
        self.assertEqual(
            argv,
            [
                ["tmux", "send-keys", "-t", "%1", "-l", "/agent-doc notes.md"],
                ["tmux", "send-keys", "-t", "%1", "Enter"],
            ],
        )
        sleep.assert_called_once()

    def test_failure_raises_with_stderr(self) -> None:
        from agent_doc.errors import TmuxError
        from agent_doc.runners.tmux import Tmux

        with mock.patch("agent_doc.runners.tmux.subprocess.run", return_value=_done(1, "", "can't find pane: %9\n")):
            with self.assertRaises(TmuxError) as ctx:
                Tmux().capture_pane("%9")
        self.assertEqual(ctx.exception.stderr, "can't find pane: %9")
        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("capture-pane", str(ctx.exception))

    def test_auto_start_creates_session_when_missing(self) -> None:
        from agent_doc.runners.tmux import Tmux

        responses = [_done(1, "", "no server running"), _done(0, "%0\n")]
        with mock.patch("agent_doc.runners.tmux.subprocess.run", side_effect=responses) as run:
            pane = Tmux().auto_start("claude", Path("/work"))
        self.assertEqual(pane, "%0")
        self.assertEqual(
            run.call_args[0][0],
            ["tmux", "new-session", "-d", "-s", "claude", "-c", "/work", "-P", "-F", "#{pane_id}"],
        )

    def test_auto_start_adds_window_to_existing_session(self) -> None:
        from agent_doc.runners.tmux import Tmux

        responses = [_done(0), _done(0), _done(0, "%8\n")]
        with mock.patch("agent_doc.runners.tmux.subprocess.run", side_effect=responses) as run:
            pane = Tmux().auto_start("claude", Path("/work"))
        self.assertEqual(pane, "%8")
        self.assertEqual(run.call_args_list[1][0][0], ["tmux", "has-session", "-t", "claude"])
        self.assertEqual(run.call_args[0][0][:3], ["tmux", "new-window", "-a"])

    def test_current_pane_prefers_environment(self) -> None:
        from agent_doc.runners.tmux import Tmux

        with mock.patch.dict("os.environ", {"TMUX_PANE": "%42"}), mock.patch(
            "agent_doc.runners.tmux.subprocess.run"
        ) as run:
            self.assertEqual(Tmux().current_pane(), "%42")
        run.assert_not_called()

    def test_pane_geometry(self) -> None:
        from agent_doc.runners.tmux import PaneGeometry, Tmux

        out = "%1 0 0\n%2 81 0\ngarbage\n%3 x 1\n"
        with mock.patch("agent_doc.runners.tmux.subprocess.run", return_value=_done(0, out)):
            panes = Tmux().pane_geometry("@1")
        self.assertEqual(panes, [PaneGeometry("%1", 0, 0), PaneGeometry("%2", 81, 0)])

    def test_join_and_break(self) -> None:
        from agent_doc.runners.tmux import Tmux

        with mock.patch("agent_doc.runners.tmux.subprocess.run", return_value=_done(0)) as run:
            Tmux().join_pane("%2", "%1", "-h")
            Tmux().break_pane("%9")
        argv = [c[0][0] for c in run.call_args_list]
        self.assertEqual(argv[0], ["tmux", "join-pane", "-s", "%2", "-t", "%1", "-h"])
        self.assertEqual(argv[1], ["tmux", "break-pane", "-s", "%9", "-d"])


if __name__ == "__main__":
    unittest.main()
