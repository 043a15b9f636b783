"""Tests for the SecretsManager operations."""

import json

import pytest

from conftest import FakeProvider, make_item
from ci_modules.secrets import SecretHandle, SecretsManager
from ci_modules.secrets.errors import (
    CredentialError,
    FieldNotFoundError,
    RotationSpecNotFoundError,
    SectionNotFoundError,
    VaultNotFoundError,
)
from ci_modules.secrets.interface import ItemField


@pytest.fixture
def db_creds(fake_store):
    item = make_item(
        "i-db", "db-creds",
        sections=[("s-stg", "staging"), ("s-prd", "prod-scope"), ("s-rot", "rotation")],
        fields=[
            ItemField(id="password", title="password", value="xyz"),
            ItemField(id="f-stg", title="password", value="stg", section_id="s-stg"),
            ItemField(id="f-1", title="expires-on", value="2025-01-01", section_id="s-rot"),
            ItemField(id="f-2", title="created-on", value="2024-01-01", section_id="s-rot"),
            ItemField(id="f-3", title="rotationFunction", value="rotateDbPassword", section_id="s-rot"),
        ],
    )
    fake_store["items"][item.id] = item
    return item


class TestFindSecret:
    @pytest.mark.asyncio
    async def test_returns_field_value(self, manager, db_creds):
        handle = await manager.find_secret("token", "prod", "db-creds", "password", section="")
        assert isinstance(handle, SecretHandle)
        assert handle.name == "password"
        assert handle.plaintext() == "xyz"

    @pytest.mark.asyncio
    async def test_scoped_to_section(self, manager, db_creds):
        handle = await manager.find_secret(
            "token", "prod", "db-creds", "password", section="staging"
        )
        assert handle.plaintext() == "stg"

    @pytest.mark.asyncio
    async def test_unknown_section(self, manager, db_creds):
        with pytest.raises(SectionNotFoundError):
            await manager.find_secret(
                "token", "prod", "db-creds", "password", section="nonexistent"
            )

    @pytest.mark.asyncio
    async def test_unknown_vault(self, manager, db_creds):
        with pytest.raises(VaultNotFoundError):
            await manager.find_secret("token", "qa", "db-creds", "password")

    @pytest.mark.asyncio
    async def test_unknown_field(self, manager, db_creds):
        with pytest.raises(FieldNotFoundError):
            await manager.find_secret("token", "prod", "db-creds", "username")

    @pytest.mark.asyncio
    async def test_value_never_in_repr(self, manager, db_creds):
        handle = await manager.find_secret("token", "prod", "db-creds", "password")
        assert "xyz" not in repr(handle)
        assert "xyz" not in str(handle)

    @pytest.mark.asyncio
    async def test_custom_secret_sink(self, fake_store, db_creds, tmp_path):
        captured = []

        def sink(name, value):
            captured.append(name)
            return SecretHandle(f"wrapped-{name}", value)

        config = tmp_path / "cfg.json"
        config.write_text(json.dumps({"backends": {"default": {"adapter": "fake"}}}))
        manager = SecretsManager(config_path=config, backends={"fake": FakeProvider}, secret_sink=sink)

        handle = await manager.find_secret("token", "prod", "db-creds", "password")
        assert captured == ["password"]
        assert handle.name == "wrapped-password"


class TestProviderLifecycle:
    @pytest.mark.asyncio
    async def test_new_provider_per_call(self, manager, db_creds):
        await manager.find_secret("token", "prod", "db-creds", "password")
        await manager.find_secret("token", "prod", "db-creds", "password")
        assert len(FakeProvider.instances) == 2
        assert all(p.closed for p in FakeProvider.instances)

    @pytest.mark.asyncio
    async def test_disconnects_on_lookup_failure(self, manager, db_creds):
        with pytest.raises(VaultNotFoundError):
            await manager.find_secret("token", "missing", "db-creds", "password")
        assert FakeProvider.instances[0].closed

    @pytest.mark.asyncio
    async def test_auth_errors_propagate_unchanged(self, manager, db_creds):
        with pytest.raises(PermissionError, match="invalid service account token"):
            await manager.find_secret("bad-token", "prod", "db-creds", "password")


class TestCredentials:
    @pytest.mark.asyncio
    async def test_accepts_secret_handle(self, manager, db_creds):
        handle = await manager.find_secret(
            SecretHandle("sa", "token-from-handle"), "prod", "db-creds", "password"
        )
        assert handle.plaintext() == "xyz"
        assert FakeProvider.instances[0].token == "token-from-handle"

    @pytest.mark.asyncio
    async def test_reads_token_from_env(self, manager, db_creds, monkeypatch):
        monkeypatch.setenv("TEST_OP_TOKEN", "env-token")
        await manager.find_secret(None, "prod", "db-creds", "password")
        assert FakeProvider.instances[0].token == "env-token"

    @pytest.mark.asyncio
    async def test_missing_env_token(self, manager, db_creds, monkeypatch):
        monkeypatch.delenv("TEST_OP_TOKEN", raising=False)
        with pytest.raises(CredentialError, match="TEST_OP_TOKEN"):
            await manager.find_secret(None, "prod", "db-creds", "password")
        assert FakeProvider.instances == []

    @pytest.mark.asyncio
    async def test_empty_token(self, manager, db_creds):
        with pytest.raises(CredentialError):
            await manager.find_secret(SecretHandle("sa", "  "), "prod", "db-creds", "password")


class TestBackendSelection:
    def test_unknown_backend(self, manager):
        with pytest.raises(KeyError, match="missing"):
            manager.provider("token", backend="missing")

    def test_unknown_adapter(self, fake_store, tmp_path):
        config = tmp_path / "cfg.json"
        config.write_text(json.dumps({"backends": {"default": {"adapter": "bitwarden"}}}))
        manager = SecretsManager(config_path=config, backends={"fake": FakeProvider})
        with pytest.raises(ValueError, match="bitwarden"):
            manager.provider("token")

    def test_invalid_config_falls_back_to_default(self, fake_store, tmp_path):
        config = tmp_path / "cfg.json"
        config.write_text("{not json")
        manager = SecretsManager(config_path=config, backends={"onepassword": FakeProvider})
        assert isinstance(manager.provider("token"), FakeProvider)


class TestFindSecretRotationSpecs:
    @pytest.mark.asyncio
    async def test_returns_json_specs(self, manager, db_creds):
        handle = await manager.find_secret_rotation_specs("token", "prod", "db-creds", "rotation")
        assert handle.name == "rotationSpecs"
        assert json.loads(handle.plaintext()) == {
            "ExpiresOn": "2025-01-01",
            "CreatedOn": "2024-01-01",
            "RotationFunction": "rotateDbPassword",
        }

    @pytest.mark.asyncio
    async def test_repeated_calls_are_identical(self, manager, db_creds):
        first = await manager.find_secret_rotation_specs("token", "prod", "db-creds", "rotation")
        second = await manager.find_secret_rotation_specs("token", "prod", "db-creds", "rotation")
        assert first.plaintext() == second.plaintext()

    @pytest.mark.asyncio
    async def test_incomplete_specs(self, manager, db_creds):
        db_creds.fields = [f for f in db_creds.fields if f.title != "created-on"]
        with pytest.raises(RotationSpecNotFoundError):
            await manager.find_secret_rotation_specs("token", "prod", "db-creds", "rotation")

    @pytest.mark.asyncio
    async def test_empty_section_name(self, manager, db_creds):
        with pytest.raises(SectionNotFoundError):
            await manager.find_secret_rotation_specs("token", "prod", "db-creds", "")


class TestPutSecret:
    @pytest.mark.asyncio
    async def test_creates_missing_item(self, manager, fake_store):
        overview = await manager.put_secret("token", "prod", "api-key", "credential", "abc")

        created = fake_store["created"][0]
        assert overview.id == created.id
        assert overview.title == "api-key"
        assert overview.vault_id == "v-prod"
        assert [(f.title, f.value, f.concealed) for f in created.fields] == [
            ("credential", "abc", True)
        ]

        handle = await manager.find_secret("token", "prod", "api-key", "credential")
        assert handle.plaintext() == "abc"

    @pytest.mark.asyncio
    async def test_updates_existing_field(self, manager, fake_store, db_creds):
        await manager.put_secret("token", "prod", "db-creds", "password", "new-pass")

        assert "created" not in fake_store
        stored = fake_store["put"][0]
        item_level = [f for f in stored.fields if f.section_id is None and f.title == "password"]
        assert [f.value for f in item_level] == ["new-pass"]
        # Section-scoped field with the same title is left alone
        assert any(f.value == "stg" for f in stored.fields)

    @pytest.mark.asyncio
    async def test_appends_new_field(self, manager, fake_store, db_creds):
        await manager.put_secret("token", "prod", "db-creds", "API Token", "t-1")

        stored = fake_store["put"][0]
        added = stored.fields[-1]
        assert (added.id, added.title, added.value, added.section_id) == (
            "api_token", "API Token", "t-1", None
        )

    @pytest.mark.asyncio
    async def test_new_field_id_does_not_clash(self, manager, fake_store, db_creds):
        # "Password" differs in case from the stored "password" field whose
        # id is also "password"
        await manager.put_secret("token", "prod", "db-creds", "Password", "new")

        stored = fake_store["put"][0]
        ids = [f.id for f in stored.fields]
        assert len(ids) == len(set(ids))

        by_title = {f.title: f for f in stored.fields if f.section_id is None}
        assert by_title["password"].value == "xyz"
        assert (by_title["Password"].id, by_title["Password"].value) == ("password_2", "new")

    @pytest.mark.asyncio
    async def test_unknown_vault(self, manager, fake_store):
        with pytest.raises(VaultNotFoundError):
            await manager.put_secret("token", "qa", "api-key", "credential", "abc")
        assert "created" not in fake_store

    @pytest.mark.asyncio
    async def test_item_listing_errors_propagate(self, manager, fake_store, monkeypatch):
        async def broken(self, vault_id):
            raise TimeoutError("listing timed out")
            yield  # pragma: no cover

        monkeypatch.setattr(FakeProvider, "list_items", broken)
        with pytest.raises(TimeoutError):
            await manager.put_secret("token", "prod", "api-key", "credential", "abc")
        assert "created" not in fake_store

    @pytest.mark.asyncio
    async def test_never_logs_value(self, manager, fake_store, caplog):
        caplog.set_level("DEBUG")
        await manager.put_secret("token", "prod", "api-key", "credential", "super-secret-value")
        assert "api-key" in caplog.text
        assert "super-secret-value" not in caplog.text
