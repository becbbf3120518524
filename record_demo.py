import sys
from tabulate import tabulate
from record_logger import set_logger
from record_fields import MalformedInputError, Record
from record_protocol import RecordProtocol

logger = set_logger("demo", "demo.log")


def example_records():
    """Records covering absent, explicitly default and non-default fields."""
    return [
        Record(),
        Record(text=None, number=None, flags=None),
        Record(text=str(), number=int(), flags=list()),
        Record(text="", number=0, flags=[]),
        Record(text="a string", number=42, flags=[True, False]),
    ]


def print_record(record, protocol):
    """Print a record, its wire text and the record read back from it."""
    print(f"record as passed: {record!r}")

    text = protocol.serialize(record)
    print(f"record serialized to {protocol.protocol_mode}: {text}")

    restored = protocol.deserialize(text)
    print(f"{protocol.protocol_mode} deserialized back to record: {restored!r}")

    return text, restored


def main():
    protocol = RecordProtocol()
    rows = []
    try:
        for i, record in enumerate(example_records()):
            if i:
                print()
            logger.info(f"Running example {i + 1}: {record!r}")
            text, restored = print_record(record, protocol)
            rows.append([i + 1, repr(record), text, repr(restored), "yes" if restored == record else "no"])
    except MalformedInputError as e:
        logger.error(f"Example failed: {e}")
        sys.stderr.write(f"error: {e}\n")
        return 1

    headers = ["#", "Record", "Wire text", "Read back", "Round trip"]
    print()
    print(tabulate(rows, headers=headers, tablefmt="grid"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
