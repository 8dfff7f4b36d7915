import logging
from types import MappingProxyType

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicNumbers

from license_errors import UnknownKey

logger = logging.getLogger('BarcodeDecoderLogger')

# (modulus, exponent) per protocol version and block size
PUBLIC_KEY_HEX = {
    "pk_v1_128": (
        "00fed2e1c27e3363316e77317a7a52c54981395186be4974760c72518d63e0544a48d088b332c5b0c370c765d65d983c1f9de0a42b310ccc07ae770bd2b61d6a4dcceac757689bdcbf608478faf312f6087cc496c3762cf5c4651caecda3499fae7edb7e0e3e18eb304170e91ed5b156aace6f432d6eca6cc35851de8c678f67",
        "00bb797ffdec7f9e42c9d6f79b137059db",
    ),
    "pk_v1_74": (
        "00ff3cec6b5f40e3c3661451b9fcfaef3aeb06dc2329c0e6f4dccc9279726716ce15bbe05eed2c5711bcf8f5b6c8f7276db5c43bfaa3040dc01ab14b9c4d16f71c0ce5ea953f0c754c6b17",
        "00db05ba822d9acc33fab7d8f427f9ce65",
    ),
    "pk_v2_128": (
        "00ca9f18ef6c3f3fa4c5a461fea54ab19406ba5ecd746d60a27492dca3d74e3b5c1d315f7b10383241809b029ebbd5de4d116030cc57f7d5a6c9a16f373bb14a508523f7e80a4c744d9085663a4a1472d7af2c56ae41b5065f7efa0293bd3278ad693546f9f16219b79ff471a3636824cffcdb63a8ed8059e6b9a4f0db895381cb",
        "187092da6454ceb1853e6915f8466a05",
    ),
    "pk_v2_74": (
        "00b404a0df11d1cacf1a1a048d4d573f953a62c583d74925927561a6d7a1e2b14042526af70b550547390ea6ec748d30fdb81adb490e0c36a1986b404b2f5f69ef5da1b663e59509130e7",
        "309cfed9719fe2a5e20c9bb44765382b",
    ),
}


def parse_public_key(modulus_hex, exponent_hex):
    """
    Turn a hex (modulus, exponent) pair into RSA public numbers.

    Colons are tolerated so values can be pasted straight from an
    ``openssl rsa -text`` dump.
    """
    n = int(modulus_hex.replace(":", ""), 16)
    e = int(exponent_hex.replace(":", ""), 16)
    return RSAPublicNumbers(e, n)


def key_name(version, block_size):
    return f"pk_{version}_{block_size}"


def _build_key_store():
    return MappingProxyType({
        name: parse_public_key(modulus_hex, exponent_hex)
        for name, (modulus_hex, exponent_hex) in PUBLIC_KEY_HEX.items()
    })


KEY_STORE = _build_key_store()


def load_public_key(name, key_store=KEY_STORE):
    try:
        return key_store[name]
    except KeyError:
        logger.error("No public key configured under %s", name)
        raise UnknownKey(f"Unknown key name {name}") from None
