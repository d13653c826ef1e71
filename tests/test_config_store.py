"""Regression tests for the profile persistence layer."""

from __future__ import annotations

import json
from datetime import datetime

import pytest

from gitswitch.core.cipher_store import CipherStore
from gitswitch.core.config_store import ProfileStore
from gitswitch.core.errors import CryptoError, FormatError
from gitswitch.core.profile import GitProfile


@pytest.fixture()
def cipher():
    store = CipherStore()
    store.set_key("profile-store-key")
    return store


@pytest.fixture()
def profile_store(tmp_path, cipher):
    directory = tmp_path / "store"
    directory.mkdir()
    return ProfileStore(directory / "profiles.json", cipher=cipher)


def _profile(**overrides) -> GitProfile:
    values = dict(
        id="work",
        name="Alice Example",
        email="alice@work.example",
        ssh_key_path="~/.ssh/id_work",
        config_text="[user]\n\tname = Alice Example\n",
        last_used=datetime(2024, 1, 2, 3, 4, 5),
    )
    values.update(overrides)
    return GitProfile(**values)


def test_missing_file_loads_empty(profile_store):
    assert profile_store.load_profiles() == []


def test_round_trip_decrypts_ssh_key_path(profile_store):
    profile_store.save_profiles([_profile()])

    loaded = profile_store.load_profiles()

    assert loaded == [_profile()]


def test_ssh_key_path_is_sealed_on_disk(profile_store):
    profile_store.save_profiles([_profile()])

    raw = json.loads(profile_store.path.read_text(encoding="utf-8"))

    assert "id_work" not in profile_store.path.read_text(encoding="utf-8")
    assert set(json.loads(raw[0]["ssh_key_path"])) == {"nonce", "ciphertext"}
    assert raw[0]["last_used"] == "2024-01-02T03:04:05"


def test_plaintext_storage_when_encryption_disabled(tmp_path, cipher):
    store = ProfileStore(tmp_path / "profiles.json", cipher=cipher, encrypt_ssh_key_paths=False)
    store.save_profiles([_profile()])

    raw = json.loads(store.path.read_text(encoding="utf-8"))

    assert raw[0]["ssh_key_path"] == "~/.ssh/id_work"
    assert store.load_profiles() == [_profile()]


def test_legacy_plaintext_path_is_accepted(profile_store):
    profile_store.path.write_text(
        json.dumps([_profile().to_dict()]), encoding="utf-8"
    )

    loaded = profile_store.load_profiles()

    assert loaded[0].ssh_key_path == "~/.ssh/id_work"


def test_wrong_key_surfaces_crypto_error(profile_store, cipher):
    profile_store.save_profiles([_profile()])
    cipher.set_key("another key")

    with pytest.raises(CryptoError):
        profile_store.load_profiles()


@pytest.mark.parametrize(
    "text",
    ["{not json", '{"profiles": []}', '[{"name": "no id"}]', '["oops"]', "[1]", "[null]"],
)
def test_malformed_profiles_file_is_format_error(profile_store, text):
    profile_store.path.write_text(text, encoding="utf-8")

    with pytest.raises(FormatError):
        profile_store.load_profiles()


def test_save_leaves_no_temporary_file(profile_store):
    profile_store.save_profiles([_profile(), _profile(id="home", ssh_key_path=None)])

    assert sorted(p.name for p in profile_store.path.parent.iterdir()) == ["profiles.json"]
    assert [p.id for p in profile_store.load_profiles()] == ["work", "home"]


def test_default_location_is_under_config_root(isolated_home, cipher):
    store = ProfileStore(cipher=cipher)
    store.save_profiles([])

    assert store.path == isolated_home / ".config" / "git-profile-switcher" / "profiles.json"
    assert store.path.read_text(encoding="utf-8") == "[]"
