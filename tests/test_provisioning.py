import asyncio

import pytest

from extension_core.errors import PermissionValidationError, ProvisioningError, SettingAlreadyExistsError
from extension_core.provisioning import setting_kind, validate_permission_name


@pytest.mark.parametrize("value,kind", [
    ({"a": 1}, "object"),
    ([1, 2], "array"),
    ("text", "string"),
    (3, "number"),
    (0.5, "number"),
    (True, "boolean"),
    (None, "null"),
])
def test_setting_kind(value, kind):
    assert setting_kind(value) == kind


def test_settings_create_is_strict(open_host):
    async def scenario():
        async with open_host() as host:
            created = await host.settings.create("core", "cache", {"enabled": True})
            assert created.kind == "object"

            with pytest.raises(SettingAlreadyExistsError):
                await host.settings.create("core", "cache", {"enabled": False})

            # тот же ключ в другом namespace допустим
            await host.settings.create("gallery", "cache", {"enabled": False})
            assert (await host.settings.find_one("core", "cache")).value == {"enabled": True}
            assert len(await host.settings.find_all()) == 2

    asyncio.run(scenario())


def test_settings_upsert_overwrites(open_host):
    async def scenario():
        async with open_host() as host:
            await host.settings.upsert("core", "mode", "dark")
            updated = await host.settings.upsert("core", "mode", ["dark", "light"])
            assert updated.kind == "array"
            assert (await host.settings.find_one("core", "mode")).value == ["dark", "light"]
            assert await host.settings.find_one("core", "missing") is None

    asyncio.run(scenario())


@pytest.mark.parametrize("name", ["core:users.read", "CORE:Users.Read", "my-ext:gallery_items.bulk-delete"])
def test_valid_permission_names(name):
    namespace = name.split(":")[0]
    validate_permission_name(namespace, name)


@pytest.mark.parametrize("name", ["core:users", "core.users.read", "core:users.read.extra", ":users.read", "core:-users.read", ""])
def test_invalid_permission_names(name):
    with pytest.raises(PermissionValidationError):
        validate_permission_name("core", name)


def test_permission_namespace_must_match():
    with pytest.raises(PermissionValidationError, match="must be 'gallery'"):
        validate_permission_name("gallery", "core:users.read")


def test_duplicate_permission_is_rejected(open_host):
    async def scenario():
        async with open_host() as host:
            await host.permissions.create_permission("core", "core:users.read")
            with pytest.raises(ProvisioningError):
                await host.permissions.create_permission("core", "core:users.read")

    asyncio.run(scenario())


def test_role_permissions_assignment_is_a_union(open_host):
    async def scenario():
        async with open_host() as host:
            read = await host.permissions.create_permission("core", "core:users.read")
            write = await host.permissions.create_permission("core", "core:users.update")

            role = await host.roles.create_role("editor", [read.id])
            assert role.source == "system"
            assert role.permission_ids == [read.id]

            role = await host.roles.assign_permissions(role.id, [read.id, write.id])
            role = await host.roles.assign_permissions(role.id, [write.id])
            assert sorted(role.permission_ids) == sorted([read.id, write.id])

            with pytest.raises(ProvisioningError):
                await host.roles.assign_permissions(role.id, [9999])
            with pytest.raises(ProvisioningError):
                await host.roles.assign_permissions(9999, [read.id])

    asyncio.run(scenario())


def test_update_role_changes_source(open_host):
    async def scenario():
        async with open_host() as host:
            role = await host.roles.create_role("moderator", [], source="user")
            updated = await host.roles.update_role(role.id, source="system")
            assert updated.source == "system"
            assert [r.source for r in await host.roles.find_roles()] == ["system"]

            with pytest.raises(ProvisioningError):
                await host.roles.update_role(9999, source="system")

    asyncio.run(scenario())
