import logging
from dataclasses import asdict, dataclass

from license_errors import InsufficientParts, InvalidText

logger = logging.getLogger('BarcodeDecoderLogger')

PART_SEPARATOR = "%"
MINIMUM_PARTS = 16


@dataclass
class VehicleRecord:
    make: str
    description: str
    color: str
    license_number: str
    vin_number: str
    vehicle_register_number: str
    engine_number: str
    expiry_date: str

    @classmethod
    def from_parts(cls, parts):
        if len(parts) < MINIMUM_PARTS:
            logger.error("Vehicle license has %d parts, expected at least %d", len(parts), MINIMUM_PARTS)
            raise InsufficientParts(len(parts))
        return cls(
            make=f"{parts[9]} {parts[10]}",
            description=parts[8],
            color=parts[11],
            license_number=parts[6],
            vin_number=parts[12],
            vehicle_register_number=parts[7],
            engine_number=parts[13],
            expiry_date=parts[14],
        )

    def to_dict(self):
        return asdict(self)


def parse_string(text):
    return VehicleRecord.from_parts(text.split(PART_SEPARATOR))


def decode_vehicle_license(data):
    """Decode vehicle license barcode text, given as bytes or an already decoded string."""
    if isinstance(data, str):
        return parse_string(data)
    try:
        text = bytes(data).decode('utf-8')
    except UnicodeDecodeError as e:
        raise InvalidText(e) from e
    return parse_string(text)
