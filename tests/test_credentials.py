"""Tests for the flat credential store."""

from fileshare_server.credentials import CredentialStore


def test_valid_and_invalid_credentials(users_file):
    store = CredentialStore(str(users_file))
    assert store.check("alice", "secret")
    assert not store.check("alice", "wrong")
    assert not store.check("carol", "secret")
    assert not store.check("", "")


def test_first_matching_username_wins(tmp_path):
    path = tmp_path / "users.txt"
    path.write_text("alice:first\nalice:second\n")
    store = CredentialStore(str(path))
    assert store.check("alice", "first")
    assert not store.check("alice", "second")


def test_password_split_on_first_colon(tmp_path):
    path = tmp_path / "users.txt"
    path.write_text("no colon here\nbob:pa:ss\r\n")
    store = CredentialStore(str(path))
    assert store.lookup("bob") == "pa:ss"
    assert store.check("bob", "pa:ss")


def test_store_is_reloaded_on_every_check(tmp_path):
    path = tmp_path / "users.txt"
    path.write_text("alice:old\n")
    store = CredentialStore(str(path))
    assert store.check("alice", "old")
    path.write_text("alice:new\n")
    assert store.check("alice", "new")
    assert not store.check("alice", "old")


def test_missing_file_rejects_everyone(tmp_path):
    store = CredentialStore(str(tmp_path / "absent.txt"))
    assert not store.check("alice", "secret")


def test_non_utf8_line_does_not_break_lookup(tmp_path):
    path = tmp_path / "users.txt"
    path.write_bytes(b"mallory:caf\xe9\nalice:secret\n")
    store = CredentialStore(str(path))
    assert store.check("alice", "secret")
    assert store.check("mallory", b"caf\xe9".decode("utf-8", errors="surrogateescape"))
    assert not store.check("mallory", "café")
