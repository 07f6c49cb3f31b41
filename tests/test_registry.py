import asyncio

from extension_core.constants import (
    EXTENSION_STATUS_FAILED,
    EXTENSION_STATUS_INSTALLED,
    EXTENSION_STATUS_PENDING,
)


def test_create_if_missing_returns_existing_record_unchanged(open_host):
    async def scenario():
        async with open_host() as host:
            created = await host.registry.create_if_missing(
                "blog", "Blog", version="1.0.0", author="team", dependencies=["core"]
            )
            assert created.status == EXTENSION_STATUS_PENDING
            assert created.dependencies == ["core"]

            again = await host.registry.create_if_missing("blog", "Renamed", version="9.9.9", enabled=False)
            assert again.id == created.id
            assert again.name == "Blog"
            assert again.version == "1.0.0"
            assert again.enabled is True
            assert len(await host.registry.list_all()) == 1

    asyncio.run(scenario())


def test_mark_failed_keeps_enabled_and_formats_error(open_host):
    async def scenario():
        async with open_host() as host:
            await host.registry.create_if_missing("blog", "Blog")

            detail = await host.registry.mark_failed("blog", ValueError("bad value"))
            assert detail == "ValueError: bad value"

            record = await host.registry.find_by_namespace("blog")
            assert record.status == EXTENSION_STATUS_FAILED
            assert record.last_error == "ValueError: bad value"
            assert record.enabled is True

            assert await host.registry.mark_failed("blog", None) == "Unknown error"

    asyncio.run(scenario())


def test_mark_installed_clears_error_and_sets_version(open_host):
    async def scenario():
        async with open_host() as host:
            await host.registry.create_if_missing("blog", "Blog", version="1.0.0")
            await host.registry.mark_failed("blog", RuntimeError("x"))
            await host.registry.mark_installed("blog", version="1.2.0")

            record = await host.registry.find_by_namespace("blog")
            assert record.status == EXTENSION_STATUS_INSTALLED
            assert record.last_error is None
            assert record.version == "1.2.0"

    asyncio.run(scenario())


def test_list_all_filters_enabled(open_host):
    async def scenario():
        async with open_host() as host:
            await host.registry.create_if_missing("a", "A")
            await host.registry.create_if_missing("b", "B", enabled=False)
            await host.registry.create_if_missing("c", "C")

            assert [r.namespace for r in await host.registry.list_all()] == ["a", "b", "c"]
            assert [r.namespace for r in await host.registry.list_all(enabled_only=True)] == ["a", "c"]

    asyncio.run(scenario())


def test_set_enabled_reports_affected_rows(open_host):
    async def scenario():
        async with open_host() as host:
            await host.registry.create_if_missing("a", "A")
            assert await host.registry.set_enabled("a", False, pending_disable=True) == 1
            assert await host.registry.set_enabled("missing", False) == 0

    asyncio.run(scenario())


def test_restart_flag_roundtrip(open_host):
    async def scenario():
        async with open_host() as host:
            assert await host.registry.is_restart_required() is False
            await host.registry.set_restart_required()
            assert await host.registry.is_restart_required() is True
            await host.registry.set_restart_required(False)
            assert await host.registry.is_restart_required() is False

    asyncio.run(scenario())


def test_acknowledge_restart_only_touches_disabled_records(open_host):
    async def scenario():
        async with open_host() as host:
            await host.registry.create_if_missing("a", "A")
            await host.registry.create_if_missing("b", "B")
            await host.registry.set_enabled("a", False, pending_disable=True)
            # pending_disable без отключения не трогаем
            await host.registry.set_enabled("b", True, pending_disable=True)
            await host.registry.set_restart_required()

            assert await host.registry.acknowledge_restart() == 1

            assert (await host.registry.find_by_namespace("a")).pending_disable is False
            assert (await host.registry.find_by_namespace("b")).pending_disable is True
            assert await host.registry.is_restart_required() is False

    asyncio.run(scenario())


def test_create_if_missing_rereads_after_duplicate_key(open_host, monkeypatch):
    async def scenario():
        async with open_host() as host:
            created = await host.registry.create_if_missing("blog", "Blog")

            real_find = host.registry.find_by_namespace
            lookups = []

            async def stale_first_read(namespace):
                lookups.append(namespace)
                # первый поиск не видит запись, созданную конкурентом
                if len(lookups) == 1:
                    return None
                return await real_find(namespace)

            monkeypatch.setattr(host.registry, "find_by_namespace", stale_first_read)
            again = await host.registry.create_if_missing("blog", "Other")

            assert lookups == ["blog", "blog"]
            assert again.id == created.id
            assert again.name == "Blog"
            monkeypatch.undo()
            assert len(await host.registry.list_all()) == 1

    asyncio.run(scenario())
