import base64
import json

import pytest

from annotaloop.codec import ArchiveCodec, is_container
from annotaloop.envelope import NONCE_SIZE, SALT_SIZE, PasswordEnvelope, looks_sealed
from annotaloop.errors import DecryptionError


@pytest.fixture
def container():
    return ArchiveCodec.build({"project.json": b'{"name": "x"}'})


def test_round_trip(container):
    sealed = PasswordEnvelope.seal(container, "s3cret")
    assert PasswordEnvelope.open(sealed, "s3cret") == container


def test_round_trip_arbitrary_bytes():
    payload = bytes(range(256)) * 3
    assert PasswordEnvelope.open(PasswordEnvelope.seal(payload, "pw"), "pw") == payload


def test_sealed_never_looks_like_container(container):
    sealed = PasswordEnvelope.seal(container, "s3cret")
    assert is_container(container)
    assert not is_container(sealed)
    assert looks_sealed(sealed)
    assert not looks_sealed(container)


def test_package_layout(container):
    sealed = PasswordEnvelope.seal(container, "s3cret")
    package = json.loads(base64.b64decode(sealed))
    assert set(package) == {"salt", "iv", "ciphertext"}
    assert len(package["salt"]) == SALT_SIZE
    assert len(package["iv"]) == NONCE_SIZE
    assert all(0 <= b <= 255 for b in package["ciphertext"])


def test_fresh_salt_and_nonce_per_seal(container):
    first = PasswordEnvelope.seal(container, "s3cret")
    second = PasswordEnvelope.seal(container, "s3cret")
    assert first != second


def test_wrong_password_raises(container):
    sealed_a = PasswordEnvelope.seal(container, "alpha")
    sealed_b = PasswordEnvelope.seal(container, "bravo")
    with pytest.raises(DecryptionError):
        PasswordEnvelope.open(sealed_a, "bravo")
    with pytest.raises(DecryptionError):
        PasswordEnvelope.open(sealed_b, "alpha")


def test_tampered_ciphertext_raises(container):
    sealed = PasswordEnvelope.seal(container, "s3cret")
    package = json.loads(base64.b64decode(sealed))
    package["ciphertext"][0] ^= 0xFF
    tampered = base64.b64encode(json.dumps(package).encode())
    with pytest.raises(DecryptionError):
        PasswordEnvelope.open(tampered, "s3cret")


@pytest.mark.parametrize("garbage", [b"", b"not base64 at all!", base64.b64encode(b'{"salt": [1]}')])
def test_damaged_envelope_raises(garbage):
    with pytest.raises(DecryptionError):
        PasswordEnvelope.open(garbage, "s3cret")


def test_empty_password_rejected_on_seal(container):
    with pytest.raises(ValueError):
        PasswordEnvelope.seal(container, "")
