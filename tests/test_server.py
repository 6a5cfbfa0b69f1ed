import os
import stat
from pathlib import Path

import pytest

from e2ee.client.identity import ClientIdentity
from e2ee.common.cipher import AsymmetricCipher
from e2ee.common.entropy import SeededRandomSource
from e2ee.common.exceptions import (
    CryptoError,
    EncodingError,
    KeyFormatError,
    PersistenceError,
)
from e2ee.common.models import KeySize, PemKeyPair
from e2ee.common.transport import TextTransport
from e2ee.server.identity import ServerIdentity


def test_round_trip_every_key_size(server_any_size: ServerIdentity) -> None:
    message = "Hello world!"
    encrypted = server_any_size.encrypt(message)
    assert server_any_size.decrypt(encrypted) == message


def test_round_trip_at_limit_every_key_size(server_any_size: ServerIdentity) -> None:
    message = "m" * server_any_size.max_message_size
    assert server_any_size.decrypt(server_any_size.encrypt(message)) == message


def test_hi_mom(server_2048: ServerIdentity) -> None:
    encrypted = server_2048.encrypt("Hi mom!")
    assert server_2048.decrypt(encrypted) == "Hi mom!"


def test_empty_message(server_2048: ServerIdentity) -> None:
    encrypted = server_2048.encrypt("")
    assert encrypted
    assert server_2048.decrypt(encrypted) == ""


def test_multiline_and_unicode(server_2048: ServerIdentity) -> None:
    message = "This is a secret message.\nCan you handle line breaks ?\nSpecial characters @!#@$#%^$&^%% ? héllo ✓ 🚀"
    assert server_2048.decrypt(server_2048.encrypt(message)) == message


def test_ciphertext_text_format(server_2048: ServerIdentity) -> None:
    encrypted = server_2048.encrypt("format")
    assert "=" not in encrypted
    assert "\n" not in encrypted
    assert len(TextTransport.from_text(encrypted)) == 256  # noqa: PLR2004


def test_encrypt_twice_differs(server_2048: ServerIdentity) -> None:
    first = server_2048.encrypt("Hi mom!")
    second = server_2048.encrypt("Hi mom!")
    assert first != second
    assert server_2048.decrypt(first) == "Hi mom!"
    assert server_2048.decrypt(second) == "Hi mom!"


def test_utf8_limit_counts_bytes(server_2048: ServerIdentity) -> None:
    # "é" is two bytes in UTF-8; the 2048-bit limit is 190 bytes
    fits = "é" * 95
    assert server_2048.decrypt(server_2048.encrypt(fits)) == fits
    with pytest.raises(CryptoError):
        server_2048.encrypt("é" * 96)


def test_oversized_message_rejected(server_1024: ServerIdentity) -> None:
    with pytest.raises(CryptoError):
        server_1024.encrypt("x" * (server_1024.max_message_size + 1))


def test_decrypt_invalid_base64(server_2048: ServerIdentity) -> None:
    with pytest.raises(EncodingError):
        server_2048.decrypt("invalid_base64_string")


def test_decrypt_valid_base64_garbage(server_2048: ServerIdentity) -> None:
    with pytest.raises(CryptoError):
        server_2048.decrypt("aGVsbG8gd29ybGQ")


def test_decrypt_invalid_utf8(server_1024: ServerIdentity) -> None:
    raw = AsymmetricCipher.encrypt(server_1024.public_key, b"\xff\xfe\xfd")
    with pytest.raises(EncodingError, match="UTF-8"):
        server_1024.decrypt(TextTransport.to_text(raw))


def test_decrypt_ciphertext_for_other_key(
    server_1024: ServerIdentity, seeded_server: ServerIdentity
) -> None:
    with pytest.raises(CryptoError):
        server_1024.decrypt(seeded_server.encrypt("not yours"))


def test_generate_rejects_unknown_size() -> None:
    with pytest.raises(ValueError, match="Unsupported key size"):
        ServerIdentity.generate(1000)


def test_generate_accepts_cli_spelling() -> None:
    identity = ServerIdentity.generate("bit1024")
    assert identity.key_size == 1024  # noqa: PLR2004


def test_seeded_generation_and_encryption_reproducible() -> None:
    first = ServerIdentity.generate(KeySize.BIT1024, rng=SeededRandomSource("x"))
    second = ServerIdentity.generate(KeySize.BIT1024, rng=SeededRandomSource("x"))
    assert first.private_key_pem == second.private_key_pem
    assert first.public_key_pem == second.public_key_pem


def test_load_from_pem_keeps_text_verbatim(server_1024: ServerIdentity) -> None:
    # Trailing blank lines are still valid PEM
    private_pem = server_1024.private_key_pem + "\n"
    public_pem = server_1024.public_key_pem + "\n\n"
    loaded = ServerIdentity.load_from_pem(private_pem, public_pem)
    assert loaded.private_key_pem == private_pem
    assert loaded.public_key_pem == public_pem
    assert loaded.get_private_key_pem() == private_pem
    assert loaded.get_public_key_pem() == public_pem


def test_load_from_pem_decrypts_earlier_ciphertext(server_1024: ServerIdentity) -> None:
    encrypted = server_1024.encrypt("persisted")
    loaded = ServerIdentity.load_from_pem(
        server_1024.private_key_pem, server_1024.public_key_pem
    )
    assert loaded.decrypt(encrypted) == "persisted"


def test_load_from_pem_malformed(server_1024: ServerIdentity) -> None:
    with pytest.raises(KeyFormatError):
        ServerIdentity.load_from_pem("garbage", server_1024.public_key_pem)
    with pytest.raises(KeyFormatError):
        ServerIdentity.load_from_pem(server_1024.private_key_pem, "garbage")


def test_load_from_pem_swapped_arguments(server_1024: ServerIdentity) -> None:
    with pytest.raises(KeyFormatError):
        ServerIdentity.load_from_pem(server_1024.public_key_pem, server_1024.private_key_pem)


def test_load_from_pem_rejects_mismatched_pair(
    server_1024: ServerIdentity, seeded_server: ServerIdentity
) -> None:
    with pytest.raises(KeyFormatError, match="does not belong"):
        ServerIdentity.load_from_pem(server_1024.private_key_pem, seeded_server.public_key_pem)


def test_load_from_pem_mismatch_allowed_when_unchecked(
    server_1024: ServerIdentity, seeded_server: ServerIdentity
) -> None:
    identity = ServerIdentity.load_from_pem(
        server_1024.private_key_pem, seeded_server.public_key_pem, verify_pair=False
    )
    with pytest.raises(CryptoError):
        identity.decrypt(identity.encrypt("lost"))


def test_pair_check_can_be_disabled_by_env(
    server_1024: ServerIdentity,
    seeded_server: ServerIdentity,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("E2EE_VERIFY_KEY_PAIR", "false")
    identity = ServerIdentity.load_from_pem(
        server_1024.private_key_pem, seeded_server.public_key_pem
    )
    assert identity.public_key_pem == seeded_server.public_key_pem


def test_pem_pair_round_trip(server_1024: ServerIdentity) -> None:
    pair = server_1024.to_pem_pair()
    assert isinstance(pair, PemKeyPair)
    restored = ServerIdentity.from_pem_pair(pair)
    assert restored.private_key_pem == server_1024.private_key_pem
    assert restored.public_key_pem == server_1024.public_key_pem


def test_client_view(server_1024: ServerIdentity) -> None:
    client = server_1024.client()
    assert isinstance(client, ClientIdentity)
    assert client.public_key_pem == server_1024.public_key_pem
    assert server_1024.decrypt(client.encrypt("from client")) == "from client"


def test_save_and_load_keys(server_2048: ServerIdentity, tmp_path: Path) -> None:
    private_path = tmp_path / "test_private_key.pem"
    public_path = tmp_path / "test_public_key.pem"

    server_2048.save_to_files(private_path, public_path)
    loaded = ServerIdentity.load_from_pem(private_path.read_text(), public_path.read_text())

    assert loaded.private_key_pem == server_2048.private_key_pem
    assert loaded.public_key_pem == server_2048.public_key_pem
    assert private_path.read_bytes() == server_2048.private_key_pem.encode()
    assert public_path.read_bytes() == server_2048.public_key_pem.encode()


def test_load_from_files(server_1024: ServerIdentity, tmp_path: Path) -> None:
    server_1024.save_to_files(str(tmp_path / "priv.pem"), str(tmp_path / "pub.pem"))
    loaded = ServerIdentity.load_from_files(tmp_path / "priv.pem", tmp_path / "pub.pem")
    assert loaded.decrypt(server_1024.encrypt("files")) == "files"


def test_load_from_missing_files(tmp_path: Path) -> None:
    with pytest.raises(PersistenceError):
        ServerIdentity.load_from_files(tmp_path / "nope.pem", tmp_path / "nope.pub")


def test_save_overwrites_existing_files(server_1024: ServerIdentity, tmp_path: Path) -> None:
    private_path = tmp_path / "private.pem"
    public_path = tmp_path / "public.pem"
    private_path.write_text("old contents that are much longer than nothing" * 100)
    public_path.write_text("old")

    server_1024.save_to_files(private_path, public_path)

    assert private_path.read_text() == server_1024.private_key_pem
    assert public_path.read_text() == server_1024.public_key_pem


def test_save_to_missing_directory(server_1024: ServerIdentity, tmp_path: Path) -> None:
    missing = tmp_path / "does" / "not" / "exist"
    with pytest.raises(PersistenceError, match="private key file") as exc_info:
        server_1024.save_to_files(missing / "private.pem", tmp_path / "public.pem")
    assert exc_info.value.path == str(missing / "private.pem")


def test_save_public_path_failure_writes_nothing(
    server_1024: ServerIdentity, tmp_path: Path
) -> None:
    private_path = tmp_path / "private.pem"
    with pytest.raises(PersistenceError, match="public key file"):
        server_1024.save_to_files(private_path, tmp_path / "missing" / "public.pem")
    assert private_path.read_text() == ""


@pytest.mark.skipif(os.name != "posix", reason="POSIX file modes")
def test_save_restricts_private_key_mode(server_1024: ServerIdentity, tmp_path: Path) -> None:
    server_1024.save_to_files(tmp_path / "private.pem", tmp_path / "public.pem")
    mode = stat.S_IMODE((tmp_path / "private.pem").stat().st_mode)
    assert mode & 0o077 == 0


@pytest.mark.skipif(os.name != "posix", reason="POSIX file modes")
def test_save_tightens_existing_private_key_mode(
    server_1024: ServerIdentity, tmp_path: Path
) -> None:
    private_path = tmp_path / "private.pem"
    private_path.write_text("old")
    private_path.chmod(0o644)

    server_1024.save_to_files(private_path, tmp_path / "public.pem")

    assert stat.S_IMODE(private_path.stat().st_mode) == 0o600
    assert private_path.read_text() == server_1024.private_key_pem


def test_repr_hides_key_material(server_1024: ServerIdentity) -> None:
    assert repr(server_1024) == "ServerIdentity(key_size=1024)"
