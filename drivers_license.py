import logging
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from field_scanner import DELIMITER_NEXT_FIELD, FieldScanner
from license_errors import InsufficientBytes, UnknownVersion
from license_keys import KEY_STORE, key_name, load_public_key

logger = logging.getLogger('BarcodeDecoderLogger')

LICENSE_LENGTH = 720
HEADER_LENGTH = 6
LARGE_BLOCK_SIZE = 128
LARGE_BLOCK_COUNT = 5
TRAILING_BLOCK_SIZE = 74

VERSION_PREFIXES = {
    bytes([0x01, 0xE1, 0x02, 0x45]): "v1",
    bytes([0x01, 0x9B, 0x09, 0x45]): "v2",
}

DATA_MARKER = 0x82
NIBBLE_TERMINATOR = 0x57
ID_NUMBER_LENGTH = 13
MALE_CODE = "01"


@dataclass
class LicenseRecord:
    vehicle_codes: List[str] = field(default_factory=list)
    surname: str = ""
    initials: str = ""
    pr_dp_code: Optional[str] = None
    id_country_of_issue: str = ""
    license_country_of_issue: str = ""
    vehicle_restrictions: List[str] = field(default_factory=list)
    license_number: str = ""
    id_number: str = ""
    id_number_type: str = ""
    license_code_issue_dates: List[str] = field(default_factory=list)
    driver_restriction_codes: str = ""
    prd_permit_expiry_date: Optional[str] = None
    license_issue_number: str = ""
    birthdate: str = ""
    license_issue_date: str = ""
    license_expiry_date: str = ""
    gender: str = ""
    image_width: int = 0
    image_height: int = 0

    def to_dict(self):
        return asdict(self)


def detect_version(data):
    prefix = bytes(data[:4])
    version = VERSION_PREFIXES.get(prefix)
    if version is None:
        logger.error("Unrecognized license prefix: %s", prefix.hex())
        raise UnknownVersion(prefix)
    return version


def decrypt_block(block, key):
    """
    Recover one block as ``block ** e mod n``.

    The result keeps its natural big-endian length, so a plaintext that
    starts with zero bytes comes back shorter than the block.
    """
    value = pow(int.from_bytes(block, 'big'), key.e, key.n)
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), 'big')


def decrypt_payload(payload, pk_large, pk_trailing):
    decrypted = bytearray()

    for i in range(LARGE_BLOCK_COUNT):
        chunk = payload[i * LARGE_BLOCK_SIZE:(i + 1) * LARGE_BLOCK_SIZE]
        decrypted += decrypt_block(chunk, pk_large)

    decrypted += decrypt_block(payload[LARGE_BLOCK_COUNT * LARGE_BLOCK_SIZE:], pk_trailing)
    return bytes(decrypted)


def decrypt_license(data, version, key_store=KEY_STORE):
    pk_large = load_public_key(key_name(version, LARGE_BLOCK_SIZE), key_store)
    pk_trailing = load_public_key(key_name(version, TRAILING_BLOCK_SIZE), key_store)
    decrypted = decrypt_payload(bytes(data[HEADER_LENGTH:]), pk_large, pk_trailing)
    logger.debug("Decrypted %s payload into %d bytes", version, len(decrypted))
    return decrypted


def parse_data(data):
    """
    Pull the license fields out of a decrypted buffer.

    Field offsets are implied by the order fields are read in, so the
    sequence below must not change.
    """
    scanner = FieldScanner(data)
    record = LicenseRecord()

    marker_position = scanner.seek_past(DATA_MARKER)
    logger.debug("Data marker found at offset %d", marker_position)

    record.vehicle_codes = scanner.read_delimited_strings(3)
    record.surname, _ = scanner.read_delimited_string()
    record.initials, delimiter = scanner.read_delimited_string()
    if delimiter == DELIMITER_NEXT_FIELD:
        record.pr_dp_code, _ = scanner.read_delimited_string()

    record.id_country_of_issue, _ = scanner.read_delimited_string()
    record.license_country_of_issue, _ = scanner.read_delimited_string()
    record.vehicle_restrictions = scanner.read_delimited_strings(3)
    record.license_number, _ = scanner.read_delimited_string()

    record.id_number = scanner.read_raw(ID_NUMBER_LENGTH, "ID number")
    record.id_number_type = f"{scanner.read_byte('ID number type'):02}"

    nibbles = scanner.read_nibbles(NIBBLE_TERMINATOR)
    record.license_code_issue_dates = nibbles.read_date_list(4)
    record.driver_restriction_codes = nibbles.read_code()
    record.prd_permit_expiry_date = nibbles.read_date_group() or None
    record.license_issue_number = nibbles.read_code()
    record.birthdate = nibbles.read_date_group()
    record.license_issue_date = nibbles.read_date_group()
    record.license_expiry_date = nibbles.read_date_group()
    record.gender = "male" if nibbles.read_code() == MALE_CODE else "female"

    scanner.skip(3)
    record.image_width = scanner.read_byte("image width")
    scanner.skip(1)
    record.image_height = scanner.read_byte("image height")

    return record


def decode_drivers_license(data, key_store=KEY_STORE):
    if len(data) != LICENSE_LENGTH:
        logger.error("Driver's license data is %d bytes, expected %d", len(data), LICENSE_LENGTH)
        raise InsufficientBytes(len(data))

    version = detect_version(data)
    logger.info("Driver's license version detected: %s", version)

    return parse_data(decrypt_license(data, version, key_store))
