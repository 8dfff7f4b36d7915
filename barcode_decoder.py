import json
import logging
import os
import sys
import traceback
import xml.etree.ElementTree as ET
from logging.handlers import RotatingFileHandler

from drivers_license import decode_drivers_license
from license_errors import BarcodeDecodeError, LicenseError
from vehicle_license import decode_vehicle_license

DEFAULT_CONFIG_PATH = 'DecodeConfig.xml'

DEFAULT_CONFIG = {
    "license_type": "drivers",
    "input_file_path": "BarcodeDecodeRawInput.bin",
    "input_format": "binary",
    "output_directory": "BarcodeDecodeOutput",
    "output_file_name": "BarcodeDecodeOutputData.json",
    "log_file": "BarcodeDecoder.log",
    "error_file": "err.txt",
}


def write_error_to_file(error_message, file_path='err.txt'):
    """Write the provided error message to the specified file."""
    try:
        with open(file_path, 'w') as file:
            file.write(error_message)
    except OSError as e:
        logging.error(f"Failed to write error to {file_path}: {e}")


def setup_logging(log_file='BarcodeDecoder.log'):
    log_formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

    handler = RotatingFileHandler(log_file, maxBytes=10*1024*1024, backupCount=5)
    handler.setFormatter(log_formatter)

    logger = logging.getLogger('BarcodeDecoderLogger')
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)

    return logger


def get_config_from_xml(file_path):
    config = {}

    tree = ET.parse(file_path)
    root = tree.getroot()

    for child in root:
        if child.text is not None:
            config[child.tag] = child.text.strip()

    return config


def load_config(file_path=DEFAULT_CONFIG_PATH):
    config = dict(DEFAULT_CONFIG)
    if os.path.exists(file_path):
        config.update(get_config_from_xml(file_path))
    return config


def parse_drivers_license(data):
    """
    Decode driver's license bytes into a plain dict.

    Raises:
    - BarcodeDecodeError: carrying the decoder's error description.
    """
    try:
        return decode_drivers_license(data).to_dict()
    except LicenseError as e:
        raise BarcodeDecodeError.from_error(e) from e


def parse_vehicle_license(data):
    try:
        return decode_vehicle_license(data).to_dict()
    except LicenseError as e:
        raise BarcodeDecodeError.from_error(e) from e


PARSERS = {
    "drivers": parse_drivers_license,
    "vehicle": parse_vehicle_license,
}


def read_barcode_input(file_path, input_format='binary'):
    """
    Reads the scanner dump from disk.

    :param file_path: Path to the file holding the barcode bytes.
    :param input_format: 'binary' for raw bytes, 'hex' for a hex text dump.
    :return: Raw barcode bytes.
    """
    if input_format == 'hex':
        with open(file_path, 'r') as file:
            return bytes.fromhex(file.read().strip())
    with open(file_path, 'rb') as file:
        return file.read()


def write_to_file(record, directory_path, file_name):
    if not os.path.exists(directory_path):
        os.makedirs(directory_path)

    full_file_path = os.path.join(directory_path, file_name)
    with open(full_file_path, 'w', encoding='utf-8') as file:
        json.dump(record, file, indent=2, ensure_ascii=False)
    return full_file_path


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    config_path = argv[0] if argv else DEFAULT_CONFIG_PATH

    try:
        config = load_config(config_path)
    except (OSError, ET.ParseError) as e:
        error_message = f"Error while reading config file {config_path}: {e}"
        write_error_to_file(error_message, DEFAULT_CONFIG["error_file"])
        logging.error(error_message)
        return 1

    logger = setup_logging(config["log_file"])
    logger.info("")
    logger.info("###  Beginning of script instance  ###")

    try:
        parser = PARSERS.get(config["license_type"])
        if parser is None:
            raise ValueError(f"Unknown license type: {config['license_type']}")

        logger.info("Attempting to read input file: %s", config["input_file_path"])
        data = read_barcode_input(config["input_file_path"], config["input_format"])
        logger.info("File read successfully: %d bytes", len(data))

        record = parser(data)

        output_path = write_to_file(record, config["output_directory"], config["output_file_name"])
        logger.info("Decoded %s license written to %s", config["license_type"], output_path)
        return 0

    except BarcodeDecodeError as e:
        write_error_to_file(str(e), config["error_file"])
        logger.error("Barcode could not be decoded: %s", e)
        return 1
    except (OSError, ValueError) as e:
        error_message = f"An error occurred: {e}\n traceback: {traceback.format_exc()}"
        write_error_to_file(error_message, config["error_file"])
        logger.error(error_message)
        return 1


if __name__ == "__main__":
    sys.exit(main())
