import json
import tempfile
import threading
import unittest
from pathlib import Path


class TestRegistry(unittest.TestCase):
    def test_register_then_lookup(self) -> None:
        from agent_doc.kernel.registry import load_registry, lookup, register, registry_path

        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            entry = register("s1", "%3", "notes/plan.md", root=root)
            self.assertEqual(entry.pane, "%3")
            self.assertEqual(lookup("s1", root=root), "%3")
            self.assertIsNone(lookup("missing", root=root))

            doc = json.loads(registry_path(root).read_text(encoding="utf-8"))
            self.assertEqual(set(doc["s1"].keys()), {"pane", "pid", "cwd", "started", "file"})
            self.assertEqual(doc["s1"]["file"], "notes/plan.md")
            self.assertTrue(doc["s1"]["started"].endswith("Z"))
            self.assertEqual(len(load_registry(root).entries), 1)

    def test_register_overwrites_previous_binding(self) -> None:
        from agent_doc.kernel.registry import load_registry, register

        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            register("s1", "%1", root=root)
            register("s1", "%7", root=root)
            reg = load_registry(root)
            self.assertEqual(reg.lookup("s1"), "%7")
            self.assertEqual(len(reg.entries), 1)

    def test_missing_file_is_empty_registry(self) -> None:
        from agent_doc.kernel.registry import load_registry

        with tempfile.TemporaryDirectory() as td:
            reg = load_registry(Path(td))
            self.assertEqual(reg.entries, {})
            self.assertEqual(reg.session_panes(), set())

    def test_unknown_fields_and_missing_fields_are_tolerated(self) -> None:
        from agent_doc.kernel.registry import load_registry, registry_path

        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            p = registry_path(root)
            p.parent.mkdir(parents=True)
            p.write_text(
                json.dumps(
                    {
                        "s1": {"pane": "%1", "pid": 10, "cwd": "/x", "started": "t", "file": "a.md", "color": "red"},
                        "s2": {"pane": "%2"},
                    }
                ),
                encoding="utf-8",
            )
            reg = load_registry(root)
            self.assertEqual(reg.lookup("s1"), "%1")
            self.assertEqual(reg.lookup("s2"), "%2")
            self.assertEqual(reg.entries["s2"].file, "")

    def test_corrupt_file_raises(self) -> None:
        from agent_doc.errors import RegistryError
        from agent_doc.kernel.registry import load_registry, registry_path

        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            p = registry_path(root)
            p.parent.mkdir(parents=True)
            p.write_text("{not json", encoding="utf-8")
            with self.assertRaises(RegistryError):
                load_registry(root)

            p.write_text(json.dumps({"s1": "pane"}), encoding="utf-8")
            with self.assertRaises(RegistryError):
                load_registry(root)

    def test_concurrent_registrations_are_all_kept(self) -> None:
        from agent_doc.kernel.registry import load_registry, register

        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            errors = []

            def worker(i: int) -> None:
                try:
                    register(f"s{i}", f"%{i}", root=root)
                except Exception as e:  # surfaced below
                    errors.append(e)

            threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            self.assertEqual(errors, [])
            reg = load_registry(root)
            self.assertEqual(sorted(reg.entries), sorted(f"s{i}" for i in range(8)))


class TestPruneDead(unittest.TestCase):
    def test_prune_removes_only_dead_panes_and_is_idempotent(self) -> None:
        from fake_tmux import FakeTmux

        from agent_doc.kernel.registry import load_registry, prune_dead, register, registry_path

        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            register("alive", "%1", "a.md", root=root)
            register("dead", "%2", "b.md", root=root)
            tmux = FakeTmux({"@1": ["%1"]})

            reg, dead = prune_dead(tmux, root=root)
            self.assertEqual([sid for sid, _ in dead], ["dead"])
            self.assertEqual(dead[0][1].file, "b.md")
            self.assertEqual(list(reg.entries), ["alive"])
            self.assertEqual(list(load_registry(root).entries), ["alive"])

            before = registry_path(root).read_text(encoding="utf-8")
            reg2, dead2 = prune_dead(tmux, root=root)
            self.assertEqual(dead2, [])
            self.assertEqual(list(reg2.entries), ["alive"])
            self.assertEqual(registry_path(root).read_text(encoding="utf-8"), before)

    def test_prune_on_missing_registry_writes_nothing(self) -> None:
        from fake_tmux import FakeTmux

        from agent_doc.kernel.registry import prune_dead, registry_path

        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            reg, dead = prune_dead(FakeTmux(), root=root)
            self.assertEqual(dead, [])
            self.assertEqual(reg.entries, {})
            self.assertFalse(registry_path(root).exists())


if __name__ == "__main__":
    unittest.main()
