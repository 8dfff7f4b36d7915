class LicenseError(ValueError):
    """Base class for every failure a license decode can report."""


class DriversLicenseError(LicenseError):
    pass


class InsufficientBytes(DriversLicenseError):
    def __init__(self, length=None):
        self.length = length
        super().__init__("Invalid license (insufficient bytes)")


class UnknownVersion(DriversLicenseError):
    def __init__(self, prefix=b""):
        self.prefix = bytes(prefix)
        super().__init__("Unrecognized license version")


class MalformedField(DriversLicenseError):
    pass


class VehicleLicenseError(LicenseError):
    pass


class InvalidText(VehicleLicenseError):
    def __init__(self, cause):
        self.cause = cause
        super().__init__(f"Invalid UTF-8: {cause}")


class InsufficientParts(VehicleLicenseError):
    def __init__(self, count=None):
        self.count = count
        super().__init__("Input data does not contain enough parts")


class BarcodeDecodeError(LicenseError):
    """
    Error handed to whoever called the boundary layer.

    Both decoders' error sets collapse into this one, keeping only the
    human readable description and the original error as ``cause``.
    """

    def __init__(self, message, cause=None):
        self.cause = cause
        super().__init__(message)

    @classmethod
    def from_error(cls, error):
        return cls(str(error), cause=error)


class UnknownKey(LookupError):
    pass
