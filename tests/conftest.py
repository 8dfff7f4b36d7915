import logging

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicNumbers

from drivers_license import LARGE_BLOCK_COUNT, LARGE_BLOCK_SIZE, TRAILING_BLOCK_SIZE

PUBLIC_EXPONENT = 65537
# Mersenne prime small enough that every residue fits a 74-byte block
TRAILING_PRIME = 2**521 - 1
# exponents for the trailing key of each version, both coprime to TRAILING_PRIME - 1
TRAILING_EXPONENTS = {"v1": 65537, "v2": 257}

V1_PREFIX = bytes([0x01, 0xE1, 0x02, 0x45])
V2_PREFIX = bytes([0x01, 0x9B, 0x09, 0x45])
PREFIX_VERSIONS = {V1_PREFIX: "v1", V2_PREFIX: "v2"}

E0 = b"\xe0"
E1 = b"\xe1"


class RoundTripKeys:
    """A separate pair of keys per version, with their private exponents."""

    def __init__(self):
        self.private = {}
        self.key_store = {}
        for version, trailing_e in TRAILING_EXPONENTS.items():
            private_key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=1024)
            numbers = private_key.private_numbers()
            large_n = numbers.public_numbers.n
            trailing_d = pow(trailing_e, -1, TRAILING_PRIME - 1)
            self.private[version] = ((large_n, numbers.d), (TRAILING_PRIME, trailing_d))
            self.key_store[f"pk_{version}_128"] = RSAPublicNumbers(PUBLIC_EXPONENT, large_n)
            self.key_store[f"pk_{version}_74"] = RSAPublicNumbers(trailing_e, TRAILING_PRIME)

    def crossed_key_store(self):
        """Key store with each version's keys filed under the other version."""
        return {
            "pk_v1_128": self.key_store["pk_v2_128"],
            "pk_v1_74": self.key_store["pk_v2_74"],
            "pk_v2_128": self.key_store["pk_v1_128"],
            "pk_v2_74": self.key_store["pk_v1_74"],
        }

    def encrypt(self, plaintext, prefix=V1_PREFIX):
        """Build a 720-byte scan whose blocks recover to ``plaintext`` under the prefix's keys."""
        (large_n, large_d), (trailing_n, trailing_d) = self.private[PREFIX_VERSIONS[prefix]]
        chunks = split_plaintext(plaintext)
        payload = bytearray()
        for chunk in chunks[:LARGE_BLOCK_COUNT]:
            value = pow(int.from_bytes(chunk, 'big'), large_d, large_n)
            payload += value.to_bytes(LARGE_BLOCK_SIZE, 'big')
        value = pow(int.from_bytes(chunks[-1], 'big'), trailing_d, trailing_n)
        payload += value.to_bytes(TRAILING_BLOCK_SIZE, 'big')
        return prefix + b"\x00\x00" + bytes(payload)


def split_plaintext(plaintext, count=LARGE_BLOCK_COUNT + 1):
    # every chunk has to start with a non-zero byte or decryption drops it
    size = -(-len(plaintext) // count)
    chunks = []
    position = 0
    for _ in range(count - 1):
        end = position + size
        while plaintext[end] == 0:
            end += 1
        chunks.append(plaintext[position:end])
        position = end
    chunks.append(plaintext[position:])
    assert all(chunk and chunk[0] != 0 for chunk in chunks)
    assert len(chunks[-1]) <= 65
    return chunks


def pack_nibbles(nibbles):
    if len(nibbles) % 2:
        nibbles = list(nibbles) + [0]
    return bytes((nibbles[i] << 4) | nibbles[i + 1] for i in range(0, len(nibbles), 2))


def date_nibbles(date):
    return [int(c) for c in date if c.isdigit()]


def build_license_plaintext(permit_code="PR", issue_dates=("2019/01/05", "2015/05/15"),
                            permit_expiry=None, gender_code=(0, 1), width=250, height=200):
    body = b"\x11\x11\x82\x4c"
    body += b"B" + E0 + b"EB" + E1 + b"C1" + E1
    body += b"SMITH" + E0
    if permit_code is None:
        body += b"JA" + E1
    else:
        body += b"JA" + E0 + permit_code.encode() + E1
    body += b"ZA" + E0 + b"ZA" + E1
    body += b"1" + E0 + E0 + E1
    body += b"40940000ABCD" + E1
    body += b"8001015009087"
    body += bytes([2])

    nibbles = []
    for i in range(4):
        if i < len(issue_dates):
            nibbles += date_nibbles(issue_dates[i])
        else:
            nibbles.append(10)
    nibbles += [0, 1]
    nibbles += date_nibbles(permit_expiry) if permit_expiry else [10]
    nibbles += [0, 2]
    nibbles += date_nibbles("1980/01/01")
    nibbles += date_nibbles("2019/01/05")
    nibbles += date_nibbles("2024/01/04")
    nibbles += list(gender_code)
    body += pack_nibbles(nibbles)
    body += b"\x57"
    body += b"\x01\x02\x03" + bytes([width]) + b"\x05" + bytes([height])
    body += b"\x11" * 6
    return body


@pytest.fixture(scope="session")
def test_keys():
    return RoundTripKeys()


@pytest.fixture
def clean_logger():
    logger = logging.getLogger('BarcodeDecoderLogger')
    handlers = list(logger.handlers)
    yield logger
    for handler in logger.handlers[:]:
        if handler not in handlers:
            handler.close()
            logger.removeHandler(handler)
