"""Tests for the schemagen command-line entry point."""

import contextlib
import io
import json
import os
import tempfile
import unittest
from unittest import mock

import run_schema


SCHEMA = b'''
person = NodeType(label="Person", properties=[Property(name="id", unique=True)])
works_for = RelationshipType(label="WORKS_FOR", source="Person", target="Company")
'''

SCHEMA_V2 = b'''
person = NodeType(label="Person", properties=[Property(name="id", unique=True), Property(name="email", required=True)])
'''

CYCLIC = b'class A(NodeType):\n    other: "B"\n\n\nclass B(NodeType):\n    other: "A"\n'

SCRIPT = """
CREATE CONSTRAINT person_id IF NOT EXISTS FOR (n:Person) REQUIRE n.id IS UNIQUE;
CREATE INDEX person_name IF NOT EXISTS FOR (n:Person) ON (n.name);
"""


class TestMain(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = self.tmpdir.name
        patcher = mock.patch("run_schema.configure_structured_logging")
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self.tmpdir.cleanup()

    def _write(self, relative, content):
        path = os.path.join(self.root, relative)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        mode = "wb" if isinstance(content, bytes) else "w"
        with open(path, mode) as f:
            f.write(content)
        return path

    def _run(self, *argv):
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            code = run_schema.main(list(argv))
        return code, stdout.getvalue()

    def test_build_to_stdout(self):
        path = self._write("schema/org.py", SCHEMA)
        code, out = self._run("build", path)
        self.assertEqual(code, 0)
        self.assertIn("CREATE CONSTRAINT person_id_unique", out)

    def test_build_to_file_as_json(self):
        path = self._write("schema/org.py", SCHEMA)
        output = os.path.join(self.root, "out", "schema.json")
        code, out = self._run("build", os.path.dirname(path), "-o", output)
        self.assertEqual(code, 0)
        self.assertEqual(out, "")
        with open(output, "r", encoding="utf-8") as f:
            self.assertIn("nodeTypes", json.load(f))

    def test_build_missing_path(self):
        code, _ = self._run("build", os.path.join(self.root, "nope"))
        self.assertEqual(code, 1)

    def test_build_cycle_fails(self):
        path = self._write("cyclic.py", CYCLIC)
        code, _ = self._run("build", path)
        self.assertEqual(code, 1)

    def test_unknown_format_is_argument_error(self):
        path = self._write("schema/org.py", SCHEMA)
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                run_schema.main(["build", path, "--format", "yaml"])
        self.assertEqual(ctx.exception.code, 2)

    def test_list_json(self):
        path = self._write("schema/org.py", SCHEMA)
        code, out = self._run("list", path, "--format", "json", "--kind", "NodeType")
        self.assertEqual(code, 0)
        self.assertEqual(list(json.loads(out)), ["NodeType", "_summary"])

    def test_graph_mermaid(self):
        path = self._write("schema/org.py", SCHEMA)
        code, out = self._run("graph", path, "--format", "mermaid")
        self.assertEqual(code, 0)
        self.assertTrue(out.startswith("graph TD"))

    def test_lint_clean(self):
        path = self._write("schema/org.py", SCHEMA_V2)
        code, out = self._run("lint", path)
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "No issues found")

    def test_lint_unknown_endpoint_fails(self):
        path = self._write("schema/org.py", SCHEMA)
        code, out = self._run("lint", path, "--format", "json")
        self.assertEqual(code, 1)
        issues = json.loads(out)
        self.assertEqual([i["rule"] for i in issues], ["WN4051"])
        self.assertEqual(issues[0]["message"], "target node type not found: Company")

    def test_lint_fail_on_warning(self):
        path = self._write("schema/org.py", b'person = NodeType(label="person")\n')
        code, out = self._run("lint", path)
        self.assertEqual(code, 0)
        self.assertIn("[WN4052] warning", out)
        code, _ = self._run("lint", path, "--fail-on-warning")
        self.assertEqual(code, 1)

    def test_diff_fail_on_breaking(self):
        old = self._write("v1.py", SCHEMA)
        new = self._write("v2.py", SCHEMA_V2)
        code, out = self._run("diff", old, new)
        self.assertEqual(code, 0)
        self.assertIn("Warning: breaking changes detected", out)
        code, _ = self._run("diff", old, new, "--fail-on-breaking")
        self.assertEqual(code, 1)

    def test_diff_mixed_kinds_is_usage_error(self):
        old = self._write("v1.py", SCHEMA)
        new = self._write("v2.json", "{}")
        code, _ = self._run("diff", old, new)
        self.assertEqual(code, 2)

    def test_import_script(self):
        script = self._write("schema.cypher", SCRIPT)
        output = os.path.join(self.root, "generated.py")
        code, _ = self._run("import", "--script", script, "--package", "people", "-o", output)
        self.assertEqual(code, 0)
        with open(output, "r", encoding="utf-8") as f:
            generated = f.read()
        self.assertIn('person = NodeType(', generated)
        self.assertIn('name="people"', generated)

    def test_import_live_connection_failure(self):
        with mock.patch("importer.catalogue.get_neo4j_driver",
                        side_effect=ConnectionError("unreachable")):
            code, _ = self._run("import", "--live")
        self.assertEqual(code, 1)

    def test_invalid_strict_config(self):
        config = self._write("graphschema.yaml", "scan:\n  exclude_dirs: generated\n")
        path = self._write("schema/org.py", SCHEMA)
        code, _ = self._run("--config", config, "--strict-config", "build", path)
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
