import json
import re
from record_logger import set_logger
from record_fields import MalformedInputError, from_fields, to_fields

logger = set_logger("record_protocol", "record_protocol.log")

PROTOCOL_MODES = ("json", "custom")
DEFAULT_PROTOCOL = "json"

# deepest nesting the custom parser accepts inside the top-level object
MAX_DEPTH = 32

_NUMBER_RE = re.compile(r"-?(0|[1-9][0-9]*)(\.[0-9]+)?")

# characters that force a key to be quoted in custom mode
_SPECIAL_KEY_CHARS = ':{},[]"\\ '


def _reject_duplicate_keys(pairs):
    """object_pairs_hook for json.loads that refuses repeated keys."""
    result = {}
    for key, value in pairs:
        if key in result:
            raise MalformedInputError(f"duplicate field {key!r}")
        result[key] = value
    return result


class RecordProtocol:
    """Turns Records into wire text and back.

    Fields that are None or hold their type's default are left out of the
    text, so they come back as None. "json" mode writes compact JSON,
    "custom" mode writes the same structure with bare keys.
    """

    def __init__(self, protocol_mode=DEFAULT_PROTOCOL):
        # validate protocol_mode: if unknown protocol, do not assume
        if protocol_mode not in PROTOCOL_MODES:
            raise ValueError(f"Invalid protocol mode {protocol_mode!r}.")
        self.protocol_mode = protocol_mode

    def serialize(self, record):
        """Render the non-empty fields of a record as text."""
        fields = to_fields(record)
        if self.protocol_mode == "json":
            text = self._json_encode(fields)
        else:
            text = RecordProtocol.serialize_part(fields)
        logger.debug(f"Serialized {record!r} as {text}")
        return text

    def encode(self, record):
        """Serialize a record and encode it to utf-8 bytes."""
        return self.serialize(record).encode("utf-8")

    def deserialize(self, data):
        """Rebuild a Record from text or utf-8 bytes.

        Raises:
            MalformedInputError: if data does not parse into a Record.
        """
        if not isinstance(data, (str, bytes, bytearray)):
            raise TypeError(f"expected str or bytes, got {type(data).__name__}")
        try:
            text = RecordProtocol._decode_text(data)
            if self.protocol_mode == "json":
                fields = self._json_decode(text)
            else:
                fields = RecordProtocol.deserialize_part(text)
            record = from_fields(fields)
        except MalformedInputError as e:
            logger.warning(f"Rejected input {data!r}: {e}")
            raise
        logger.debug(f"Deserialized {data!r} into {record!r}")
        return record

    @staticmethod
    def _decode_text(data):
        """Decode bytes as utf-8, pass text through."""
        if isinstance(data, str):
            return data
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedInputError(f"input is not valid utf-8: {e}") from e

    def _json_encode(self, obj):
        """Encode a Python object as compact JSON text."""
        return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))

    def _json_decode(self, text):
        """Decode JSON text to a Python object."""
        try:
            return json.loads(text, object_pairs_hook=_reject_duplicate_keys)
        except MalformedInputError:
            raise
        except (ValueError, RecursionError) as e:
            # JSONDecodeError, the int digit limit and overly deep nesting
            raise MalformedInputError(f"invalid JSON: {e}") from e

    @staticmethod
    def serialize_part(data):
        """Stringify data types"""
        if isinstance(data, dict):
            items = [f"{RecordProtocol._escape_key(str(key))}:{RecordProtocol.serialize_part(value)}" for key, value in data.items()]
            return "{" + ",".join(items) + "}"
        elif isinstance(data, list):
            serialized_items = [RecordProtocol.serialize_part(item) for item in data]
            return "[" + ",".join(serialized_items) + "]"
        elif isinstance(data, str):
            return '"' + data.replace("\\", "\\\\").replace('"', '\\"') + '"'
        elif isinstance(data, bool):  # before int, bool is an int subclass
            return "true" if data else "false"
        elif data is None:
            return "null"
        elif isinstance(data, (int, float)):
            return str(data)
        raise TypeError(f"cannot serialize {type(data).__name__}")

    @staticmethod
    def deserialize_part(data):
        """Parses a string representation back into original datatype"""
        data = data.strip()

        if not data:
            raise MalformedInputError("empty value")
        if data.startswith("{"):
            if not data.endswith("}"):
                raise MalformedInputError(f"unterminated object: {data!r}")
            return RecordProtocol._parse_dict(data[1:-1])
        elif data.startswith("["):
            if not data.endswith("]"):
                raise MalformedInputError(f"unterminated list: {data!r}")
            return RecordProtocol._parse_list(data[1:-1])
        elif data.startswith('"'):
            if len(data) < 2 or not data.endswith('"'):
                raise MalformedInputError(f"unterminated string: {data!r}")
            return RecordProtocol._unescape_string(data[1:-1])
        elif data == "true":
            return True
        elif data == "false":
            return False
        elif data == "null":
            return None
        elif RecordProtocol._is_number(data):
            try:
                return float(data) if "." in data else int(data)
            except ValueError as e:
                raise MalformedInputError(f"unreadable number: {e}") from e
        raise MalformedInputError(f"unrecognized value: {data!r}")

    @staticmethod
    def _parse_dict(data):
        """Parses a dictionary from a serialized string."""
        result = {}
        for item in RecordProtocol._split_items(data):
            # first colon that's not inside quotes
            in_quotes = escaped = False
            colon_pos = -1
            for i, char in enumerate(item):
                if escaped:
                    escaped = False
                elif char == "\\" and in_quotes:
                    escaped = True
                elif char == '"':
                    in_quotes = not in_quotes
                elif char == ":" and not in_quotes:
                    colon_pos = i
                    break

            if colon_pos == -1:
                raise MalformedInputError(f"expected key:value, got {item!r}")
            key = RecordProtocol._unescape_key(item[:colon_pos].strip())
            if key in result:
                raise MalformedInputError(f"duplicate field {key!r}")
            result[key] = RecordProtocol.deserialize_part(item[colon_pos + 1:])
        return result

    @staticmethod
    def _parse_list(data):
        """Parses a list from a serialized string."""
        items = RecordProtocol._split_items(data)
        return [RecordProtocol.deserialize_part(item) for item in items]

    @staticmethod
    def _split_items(data):
        """Splits serialized items while handling nested structures."""
        items, stack, current = [], [], ""
        in_string = escaped = False
        openers = {"}": "{", "]": "["}
        for char in data:
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char in "{[":
                stack.append(char)
                if len(stack) > MAX_DEPTH:
                    raise MalformedInputError(f"nesting deeper than {MAX_DEPTH} levels")
            elif char in "}]":
                if not stack or stack.pop() != openers[char]:
                    raise MalformedInputError(f"unbalanced {char!r} in {data!r}")
            elif char == "," and not stack:
                items.append(current.strip())
                current = ""
                continue
            current += char

        if in_string:
            raise MalformedInputError(f"unterminated string in {data!r}")
        if stack:
            raise MalformedInputError(f"unclosed {stack[-1]!r} in {data!r}")
        if current.strip() or items:
            items.append(current.strip())
        if not all(items):
            raise MalformedInputError(f"empty item in {data!r}")
        return items

    @staticmethod
    def _is_number(value):
        """Checks if a string represents a number."""
        # same shape JSON allows, minus exponents
        return _NUMBER_RE.fullmatch(value) is not None

    @staticmethod
    def _escape_key(key):
        """Escapes dictionary keys to ensure proper serialization."""
        if not key or any(c in key for c in _SPECIAL_KEY_CHARS):
            return RecordProtocol.serialize_part(key)
        return key

    @staticmethod
    def _unescape_key(key):
        """Unescapes dictionary keys after unserialization."""
        if key.startswith('"'):
            if len(key) < 2 or not key.endswith('"'):
                raise MalformedInputError(f"unterminated key: {key!r}")
            return RecordProtocol._unescape_string(key[1:-1])
        if not key or any(c in key for c in _SPECIAL_KEY_CHARS):
            raise MalformedInputError(f"invalid key: {key!r}")
        return key

    @staticmethod
    def _unescape_string(data):
        """Undo the quote and backslash escapes of a string body."""
        out = []
        chars = iter(data)
        for char in chars:
            if char == "\\":
                escaped = next(chars, None)
                if escaped not in ('"', "\\"):
                    raise MalformedInputError(f"invalid escape in string: {data!r}")
                out.append(escaped)
            elif char == '"':
                raise MalformedInputError(f"unescaped quote in string: {data!r}")
            else:
                out.append(char)
        return "".join(out)
