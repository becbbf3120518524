import unittest
import io
import sys
import os
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import record_demo
from record_fields import MalformedInputError, Record
from record_protocol import RecordProtocol

# to run: python3 -m unittest test_suite/test_record_demo.py -v

class TestDemo(unittest.TestCase):
    def test_example_records(self):
        """The five examples cover absent, default and non-default fields."""
        records = record_demo.example_records()
        self.assertEqual(len(records), 5)
        self.assertEqual(records[0], Record())
        self.assertEqual(records[1], Record())
        self.assertEqual(records[2], Record(text="", number=0, flags=[]))
        self.assertEqual(records[3], records[2])
        self.assertEqual(records[4], Record(text="a string", number=42, flags=[True, False]))

    def test_print_record(self):
        out = io.StringIO()
        record = Record(number=0, flags=[True, False])
        with redirect_stdout(out):
            text, restored = record_demo.print_record(record, RecordProtocol())
        self.assertEqual(text, '{"flags":[true,false]}')
        self.assertEqual(restored, Record(flags=[True, False]))
        lines = out.getvalue().splitlines()
        self.assertEqual(len(lines), 3)
        self.assertEqual(lines[0], f"record as passed: {record!r}")
        self.assertEqual(lines[1], 'record serialized to json: {"flags":[true,false]}')
        self.assertEqual(lines[2], f"json deserialized back to record: {Record(flags=[True, False])!r}")

    def test_main(self):
        out = io.StringIO()
        with redirect_stdout(out):
            status = record_demo.main()
        self.assertEqual(status, 0)
        output = out.getvalue()
        self.assertEqual(output.count("record serialized to json: {}"), 4)
        self.assertIn('record serialized to json: {"text":"a string","number":42,"flags":[true,false]}', output)
        # summary table
        self.assertIn("Round trip", output)
        self.assertIn("+", output)

    def test_main_malformed(self):
        """A deserialization failure aborts the demo."""
        out, err = io.StringIO(), io.StringIO()
        with patch.object(RecordProtocol, "deserialize", side_effect=MalformedInputError("boom")):
            with redirect_stdout(out), redirect_stderr(err):
                status = record_demo.main()
        self.assertEqual(status, 1)
        self.assertEqual(err.getvalue(), "error: boom\n")
        self.assertNotIn("Round trip", out.getvalue())


if __name__ == '__main__':
    unittest.main()
