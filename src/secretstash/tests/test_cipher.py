import pytest

from secretstash import (
    AuthenticationError,
    ConfigurationError,
    FormatError,
    TagMismatchError,
)
from secretstash.cipher import (
    AESGCMCipher,
    AgeCipher,
    ChaCha20Poly1305Cipher,
    PlaintextCipher,
    all_ciphers,
    get_cipher,
    known_tags,
)
from secretstash.framing import pack, unpack

KEY = bytes(range(32))
OTHER_KEY = bytes(range(1, 33))

PLAINTEXTS = [
    "",
    "hello",
    "sk_live_123",
    "postgres://user:p;a;s;s@db/app",
    "multi\nline\n",
    "Grüße, 世界",
    "x" * 100000,
]

# age is slow (scrypt inside), it gets its own smaller set of tests.
FAST_CIPHERS = [PlaintextCipher, AESGCMCipher, ChaCha20Poly1305Cipher]
AEAD_CIPHERS = [AESGCMCipher, ChaCha20Poly1305Cipher]


@pytest.mark.parametrize("cipher_class", FAST_CIPHERS)
@pytest.mark.parametrize("plaintext", PLAINTEXTS)
def test_decrypt_returns_encrypted_plaintext(cipher_class, plaintext):
    cipher = cipher_class()
    blob = cipher.encrypt(KEY, plaintext, {})
    assert cipher.decrypt(KEY, blob, {}) == plaintext


@pytest.mark.parametrize("plaintext", ["", "hello"])
def test_age_decrypt_returns_encrypted_plaintext(plaintext):
    cipher = AgeCipher()
    blob = cipher.encrypt(KEY, plaintext, {})
    assert unpack("AGE", blob)[0].startswith(b"age-encryption.org/v1")
    assert cipher.decrypt(KEY, blob, {}) == plaintext


def test_age_wrong_key_fails_authentication():
    cipher = AgeCipher()
    blob = cipher.encrypt(KEY, "hello", {})
    with pytest.raises(AuthenticationError):
        cipher.decrypt(OTHER_KEY, blob, {})


def test_plaintext_blob_is_readable():
    blob = PlaintextCipher().encrypt(None, "hello", {})
    assert blob == pack("PLAIN", [b"hello"])
    assert b"hello" in blob
    assert PlaintextCipher().decrypt(None, blob, {}) == "hello"


def test_plaintext_joins_multiple_parts():
    blob = pack("PLAIN", [b"a", b"b", b"c"])
    assert PlaintextCipher().decrypt(None, blob, {}) == "a;b;c"


def test_plaintext_rejects_non_utf8():
    with pytest.raises(FormatError):
        PlaintextCipher().decrypt(None, pack("PLAIN", [b"\xff"]), {})


@pytest.mark.parametrize("cipher_class", AEAD_CIPHERS)
def test_aead_blob_layout(cipher_class):
    cipher = cipher_class()
    nonce, ciphertext, mac = unpack(
        cipher.tag, cipher.encrypt(KEY, "hello", {})
    )
    assert len(nonce) == 12
    assert len(ciphertext) == 5
    assert len(mac) == 16
    assert b"hello" not in ciphertext


@pytest.mark.parametrize("cipher_class", AEAD_CIPHERS)
def test_aead_uses_fresh_nonce(cipher_class):
    cipher = cipher_class()
    first = cipher.encrypt(KEY, "hello", {})
    second = cipher.encrypt(KEY, "hello", {})
    assert first != second
    assert unpack(cipher.tag, first)[0] != unpack(cipher.tag, second)[0]


@pytest.mark.parametrize("cipher_class", AEAD_CIPHERS)
def test_aead_detects_every_bit_flip(cipher_class):
    cipher = cipher_class()
    blob = cipher.encrypt(KEY, "hunter2", {})
    for i in range(len(blob) * 8):
        tampered = bytearray(blob)
        tampered[i // 8] ^= 1 << (i % 8)
        with pytest.raises(AuthenticationError):
            cipher.decrypt(KEY, bytes(tampered), {})


@pytest.mark.parametrize("cipher_class", AEAD_CIPHERS)
def test_aead_detects_truncation_and_extension(cipher_class):
    cipher = cipher_class()
    blob = cipher.encrypt(KEY, "hunter2", {})
    for tampered in [blob[:-1], blob + b"\x00", blob[:20], b""]:
        with pytest.raises(AuthenticationError):
            cipher.decrypt(KEY, tampered, {})


@pytest.mark.parametrize("cipher_class", AEAD_CIPHERS)
def test_aead_wrong_key_fails_authentication(cipher_class):
    cipher = cipher_class()
    blob = cipher.encrypt(KEY, "hello", {})
    with pytest.raises(AuthenticationError) as e:
        cipher.decrypt(OTHER_KEY, blob, {})
    assert not isinstance(e.value, FormatError)
    assert str(e.value) == (
        f"Cannot decrypt {cipher.name} secret: integrity check failed"
    )


@pytest.mark.parametrize("cipher_class", AEAD_CIPHERS)
def test_aead_binds_associated_data(cipher_class):
    cipher = cipher_class()
    blob = cipher.encrypt(KEY, "hello", {"associated_data": "prod/db_url"})
    assert (
        cipher.decrypt(KEY, blob, {"associated_data": "prod/db_url"})
        == "hello"
    )
    with pytest.raises(AuthenticationError):
        cipher.decrypt(KEY, blob, {"associated_data": "dev/db_url"})
    with pytest.raises(AuthenticationError):
        cipher.decrypt(KEY, blob, {})


def test_aead_rejects_well_formed_blob_of_other_cipher():
    blob = AESGCMCipher().encrypt(KEY, "hello", {})
    with pytest.raises(TagMismatchError) as e:
        ChaCha20Poly1305Cipher().decrypt(KEY, blob, {})
    assert e.value.found == "AES256GCM"


def test_aead_rejects_plaintext_blob_as_wrong_cipher():
    blob = PlaintextCipher().encrypt(KEY, "hello", {})
    with pytest.raises(TagMismatchError):
        AESGCMCipher().decrypt(KEY, blob, {})


def test_plaintext_rejects_aead_blob():
    blob = AESGCMCipher().encrypt(KEY, "hello", {})
    with pytest.raises(FormatError):
        PlaintextCipher().decrypt(KEY, blob, {})


@pytest.mark.parametrize(
    "cipher_class, key",
    [
        (AESGCMCipher, b"short"),
        (AESGCMCipher, "not bytes"),
        (ChaCha20Poly1305Cipher, bytes(16)),
    ],
)
def test_aead_rejects_unusable_keys(cipher_class, key):
    with pytest.raises(ConfigurationError):
        cipher_class().encrypt(key, "hello", {})


def test_aes_accepts_128_bit_keys():
    cipher = AESGCMCipher()
    blob = cipher.encrypt(bytes(16), "hello", {})
    assert cipher.decrypt(bytes(16), blob, {}) == "hello"


@pytest.mark.parametrize("cipher_class", FAST_CIPHERS)
def test_unknown_cipher_options_are_rejected(cipher_class):
    with pytest.raises(ConfigurationError):
        cipher_class().encrypt(KEY, "hello", {"mode": "cbc"})


def test_tags_are_unique():
    assert len(known_tags()) == len(all_ciphers)


def test_get_cipher():
    assert isinstance(get_cipher("aes256gcm"), AESGCMCipher)
    assert isinstance(get_cipher("plaintext"), PlaintextCipher)
    custom = PlaintextCipher()
    assert get_cipher(custom) is custom


def test_get_cipher_unknown():
    with pytest.raises(ConfigurationError) as e:
        get_cipher("rot13")
    assert str(e.value) == (
        "Unknown cipher 'rot13', choose one of: "
        "plaintext, aes256gcm, chacha20poly1305, age"
    )
