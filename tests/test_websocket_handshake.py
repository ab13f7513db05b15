import pytest

from uwsproto.websocket_handshake import generate_accept, sha1_digest


def test_bytes_and_str_keys_agree():
    key = "x3JJHMbDL1EzLkh9GBhXDw=="
    assert generate_accept(key) == generate_accept(key.encode("ascii"))


def test_accept_shape():
    accept = generate_accept("AAAAAAAAAAAAAAAAAAAAAA==")
    assert len(accept) == 28
    assert accept.endswith("=")
    assert not accept.endswith("==")


def test_different_keys_give_different_accepts():
    assert generate_accept("AAAAAAAAAAAAAAAAAAAAAA==") != generate_accept(
        "BAAAAAAAAAAAAAAAAAAAAA=="
    )


@pytest.mark.parametrize("key", ["", "short", "x3JJHMbDL1EzLkh9GBhXDw==="])
def test_wrong_key_length_rejected(key):
    with pytest.raises(ValueError):
        generate_accept(key)


def test_sha1_known_vector():
    assert sha1_digest(b"abc").hex() == "a9993e364706816aba3e25717850c26c9cd0d89d"


def test_sha1_digest_length_and_determinism():
    digest = sha1_digest(bytearray(b"payload"))
    assert len(digest) == 20
    assert digest == sha1_digest(memoryview(b"payload"))