"""End-to-end tests for the command line interface."""

from __future__ import annotations

import json

import pytest

pytest.importorskip("typer")

from typer.testing import CliRunner

from gitswitch.__main__ import main as module_main
from gitswitch import __version__
from gitswitch.cli import app, run_cli
from gitswitch.core import keyring_source

runner = CliRunner()


@pytest.fixture(autouse=True)
def empty_keyring(monkeypatch):
    monkeypatch.setattr(keyring_source.keyring, "get_keyring", lambda: object())
    monkeypatch.setattr(keyring_source.keyring, "get_password", lambda *_: None)


def test_encrypt_then_decrypt():
    sealed = runner.invoke(app, ["encrypt", "~/.ssh/id_work", "--key", "cli-key"])
    assert sealed.exit_code == 0
    envelope = sealed.stdout.strip()
    assert set(json.loads(envelope)) == {"nonce", "ciphertext"}

    opened = runner.invoke(app, ["decrypt", envelope, "--key", "cli-key"])

    assert opened.exit_code == 0
    assert opened.stdout.strip() == "~/.ssh/id_work"


def test_decrypt_with_wrong_key_fails():
    envelope = runner.invoke(app, ["encrypt", "secret", "--key", "k1"]).stdout.strip()

    result = runner.invoke(app, ["decrypt", envelope, "--key", "k2"])

    assert result.exit_code == 1
    assert "CryptoError" in result.output


def test_key_from_environment(monkeypatch):
    monkeypatch.setenv("GITSWITCH_KEY", "env-key")
    envelope = runner.invoke(app, ["encrypt", "payload"]).stdout.strip()

    result = runner.invoke(app, ["decrypt", envelope, "--key", "env-key"])

    assert result.stdout.strip() == "payload"


def test_missing_key_is_reported():
    result = runner.invoke(app, ["encrypt", "payload"])

    assert result.exit_code == 1
    assert "No encryption key" in result.output


def test_encrypt_file_and_decrypt_file(tmp_path):
    source = tmp_path / "notes.txt"
    source.write_text("line one\nline two\n", encoding="utf-8")
    sealed = tmp_path / "notes.enc"

    assert runner.invoke(app, ["encrypt-file", str(source), str(sealed), "--key", "f"]).exit_code == 0
    result = runner.invoke(app, ["decrypt-file", str(sealed), "--key", "f"])

    assert result.exit_code == 0
    assert result.stdout == "line one\nline two\n"


def test_apply_reports_update_then_noop(tmp_path, isolated_home):
    source = tmp_path / "new.gitconfig"
    source.write_text("[user]\n\tname = CLI\n", encoding="utf-8")

    first = runner.invoke(app, ["apply", str(source)])
    second = runner.invoke(app, ["apply", str(source)])

    assert first.exit_code == 0
    assert "Git config updated successfully" in first.stdout
    assert second.exit_code == 0
    assert "Git config is already up to date" in second.stdout
    assert (isolated_home / ".gitconfig").read_text(encoding="utf-8") == "[user]\n\tname = CLI\n"


def test_apply_backup_options(tmp_path, isolated_home):
    (isolated_home / ".gitconfig").write_text("old", encoding="utf-8")
    source = tmp_path / "new.gitconfig"
    source.write_text("new", encoding="utf-8")
    backups = tmp_path / "cli-backups"

    result = runner.invoke(app, ["apply", str(source), "--backup-dir", str(backups)])

    assert result.exit_code == 0
    [backup] = list(backups.iterdir())
    assert backup.read_text(encoding="utf-8") == "old"

    source.write_text("newer", encoding="utf-8")
    result = runner.invoke(app, ["apply", str(source), "--no-backup", "--backup-dir", str(backups)])

    assert result.exit_code == 0
    assert len(list(backups.iterdir())) == 1


def test_show_prints_git_config(isolated_home):
    (isolated_home / ".gitconfig").write_text("[core]\n\teditor = vim\n", encoding="utf-8")

    result = runner.invoke(app, ["show"])

    assert result.exit_code == 0
    assert result.stdout == "[core]\n\teditor = vim\n"


def test_list_and_activate_profiles(isolated_home):
    from gitswitch.core.cipher_store import CipherStore
    from gitswitch.core.config_store import ProfileStore
    from gitswitch.core.profile import GitProfile

    cipher = CipherStore()
    cipher.set_key("profiles")
    ProfileStore(cipher=cipher).save_profiles(
        [GitProfile(id="oss", name="Pat", email="pat@oss.example", ssh_key_path="~/.ssh/oss")]
    )

    listed = runner.invoke(app, ["list", "--key", "profiles"])
    activated = runner.invoke(app, ["activate", "oss", "--key", "profiles"])

    assert listed.exit_code == 0
    assert "pat@oss.example" in listed.stdout
    assert activated.exit_code == 0
    assert "Git config updated successfully" in activated.stdout
    gitconfig = (isolated_home / ".gitconfig").read_text(encoding="utf-8")
    assert f'sshCommand = "ssh -i {isolated_home / ".ssh" / "oss"} -o IdentitiesOnly=yes"' in gitconfig


def test_activate_without_key_leaves_profiles_untouched(isolated_home):
    from gitswitch.core.cipher_store import CipherStore
    from gitswitch.core.config_store import ProfileStore
    from gitswitch.core.profile import GitProfile

    cipher = CipherStore()
    cipher.set_key("profiles")
    store = ProfileStore(cipher=cipher)
    store.save_profiles(
        [GitProfile(id="oss", name="Pat", email="pat@oss.example", ssh_key_path="~/.ssh/oss")]
    )
    before = store.path.read_bytes()

    result = runner.invoke(app, ["activate", "oss"])

    assert result.exit_code == 1
    assert "No encryption key" in result.output
    assert store.path.read_bytes() == before
    assert not (isolated_home / ".gitconfig").exists()


def test_apply_keeps_old_gitconfig(tmp_path, isolated_home):
    (isolated_home / ".gitconfig").write_text("[user]\n\tname = Old\n", encoding="utf-8")
    source = tmp_path / "new.gitconfig"
    source.write_text("[user]\n\tname = New\n", encoding="utf-8")

    result = runner.invoke(app, ["apply", str(source)])

    assert result.exit_code == 0
    assert (isolated_home / "old.gitconfig").read_text(encoding="utf-8") == "[user]\n\tname = Old\n"
    assert (isolated_home / ".gitconfig").read_text(encoding="utf-8") == "[user]\n\tname = New\n"


def test_activate_unknown_profile_fails():
    result = runner.invoke(app, ["activate", "ghost", "--key", "profiles"])

    assert result.exit_code == 1
    assert "ProfileError" in result.output


def test_run_cli_returns_exit_codes():
    assert run_cli(["encrypt", "x", "--key", "k"]) == 0
    assert run_cli(["decrypt", "{}", "--key", "k"]) == 1
    assert run_cli(["no-such-command"]) == 2


def test_module_entry_point_version(capsys):
    assert module_main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == __version__
