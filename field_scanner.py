from collections import deque

from license_errors import MalformedField

DELIMITER_NEXT_FIELD = 0xE0
DELIMITER_END = 0xE1
DELIMITERS = (DELIMITER_NEXT_FIELD, DELIMITER_END)

ABSENT_DATE_NIBBLE = 10


def bytes_to_text(raw):
    # Each byte value is taken as its code point, not UTF-8 decoded.
    return "".join(chr(b) for b in raw)


class FieldScanner:
    """
    Cursor over the decrypted license buffer.

    Every read advances the cursor; nothing ever moves it backwards.
    """

    def __init__(self, data, index=0):
        self.data = bytes(data)
        self.index = index

    def remaining(self):
        return max(len(self.data) - self.index, 0)

    def seek_past(self, marker, offset=2):
        """
        Position the cursor ``offset`` bytes past the first ``marker`` byte.

        When the marker never occurs the search position stays at 0, so the
        cursor still lands on ``offset``.
        """
        position = self.data.find(bytes([marker]))
        if position < 0:
            position = 0
        self.index = position + offset
        return position

    def read_delimited_string(self):
        """
        Read bytes up to the next delimiter.

        Returns:
        - tuple: (text, delimiter byte that ended it)
        """
        start = self.index
        while self.index < len(self.data):
            b = self.data[self.index]
            self.index += 1
            if b in DELIMITERS:
                return bytes_to_text(self.data[start:self.index - 1]), b
        raise MalformedField("Unexpected end of data while reading string")

    def read_delimited_strings(self, count):
        strings = []
        for _ in range(count):
            start = self.index
            while True:
                if self.index >= len(self.data):
                    if self.index > start:
                        strings.append(bytes_to_text(self.data[start:self.index]))
                    return strings
                b = self.data[self.index]
                self.index += 1
                if b in DELIMITERS:
                    # empty entries are dropped, the list just comes back shorter
                    if self.index - 1 > start:
                        strings.append(bytes_to_text(self.data[start:self.index - 1]))
                    break
        return strings

    def read_raw(self, length, field="field"):
        if self.remaining() < length:
            raise MalformedField(f"Data ended prematurely while reading {field}")
        raw = self.data[self.index:self.index + length]
        self.index += length
        return bytes_to_text(raw)

    def read_byte(self, field="field"):
        if self.index >= len(self.data):
            raise MalformedField(f"Data ended prematurely while reading {field}")
        value = self.data[self.index]
        self.index += 1
        return value

    def skip(self, count):
        self.index += count

    def read_nibbles(self, terminator):
        """
        Split bytes into nibbles (high first) until ``terminator`` is consumed
        or the buffer runs out. The terminator itself is not queued.
        """
        nibbles = []
        while self.index < len(self.data):
            b = self.data[self.index]
            self.index += 1
            if b == terminator:
                break
            nibbles.append(b >> 4)
            nibbles.append(b & 0x0F)
        return NibbleQueue(nibbles)


class NibbleQueue:
    def __init__(self, nibbles=()):
        self._nibbles = deque(nibbles)

    def __len__(self):
        return len(self._nibbles)

    def pop(self):
        if not self._nibbles:
            raise MalformedField("Nibble data ended prematurely")
        return self._nibbles.popleft()

    def read_code(self, width=2):
        return "".join(str(self.pop()) for _ in range(width))

    def read_date_group(self):
        """
        Read one packed date as ``"YYYY/MM/DD"``.

        A leading nibble of 10 marks the date as absent; only that nibble is
        consumed and an empty string comes back.
        """
        first = self.pop()
        if first == ABSENT_DATE_NIBBLE:
            return ""
        digits = [first] + [self.pop() for _ in range(7)]
        year = "".join(str(d) for d in digits[:4])
        month = "".join(str(d) for d in digits[4:6])
        day = "".join(str(d) for d in digits[6:])
        return f"{year}/{month}/{day}"

    def read_date_list(self, count):
        dates = []
        for _ in range(count):
            date = self.read_date_group()
            if date:
                dates.append(date)
        return dates
