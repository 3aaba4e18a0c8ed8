"""Tests for wiring plugins into host collaborators."""

import asyncio
from pathlib import Path

import pytest

from devserver.plugins.builder import PluginBuilder, normalize_asset
from devserver.plugins.descriptor import PluginDescriptor
from devserver.plugins.errors import BuildError
from devserver.plugins.module import PluginHooks, PluginModule
from devserver.plugins.registry import PluginRecord, PluginRegistry
from devserver.services.config_service import PluginConfig
from devserver.services.events import EventBus
from devserver.services.injector import AssetDefinition, AssetInjector
from devserver.services.io import ServiceRegistry
from devserver.services.middleware import MiddlewareRegistry, RequestContext


def make_record(name, path="/plugins/foo", trusted=False, hooks=None, options=None, **module_fields):
    descriptor = PluginDescriptor(name=name, options=options or {})
    return PluginRecord(
        name=name,
        path=Path(path),
        module=PluginModule(hooks=PluginHooks(**(hooks or {})), **module_fields),
        descriptor=descriptor,
        trusted=trusted,
        config=PluginConfig(name, descriptor.options, descriptor),
    )


@pytest.fixture
def registry():
    return PluginRegistry()


@pytest.fixture
def builder(registry, config):
    return PluginBuilder(
        registry,
        config,
        MiddlewareRegistry(),
        AssetInjector(),
        EventBus(),
        ServiceRegistry(),
    )


class TestNormalizeAsset:
    """Tests for normalize_asset."""

    def test_shorthand_is_joined_onto_plugin_path(self):
        default_test = object()

        asset = normalize_asset("style.css", "/plugins/foo", default_test)

        assert asset == AssetDefinition(filename="/plugins/foo/style.css", test=default_test)

    def test_absolute_filename_is_unchanged(self):
        asset = normalize_asset({"filename": "/abs/client.js"}, "/plugins/foo", None)

        assert asset.filename == "/abs/client.js"

    def test_entry_test_overrides_shared_test(self):
        asset = normalize_asset({"filename": "a.js", "test": r"\.html$"}, "/plugins/foo", "shared")

        assert asset.test == r"\.html$"
        assert asset.filename == "/plugins/foo/a.js"


class TestBuildOne:
    """Tests for PluginBuilder.build_one."""

    @pytest.mark.asyncio
    async def test_services_and_assets_are_registered(self, builder):
        def shared_test(path):
            return path.endswith(".html")

        record = make_record(
            "foo",
            services={"ping": lambda payload: "pong"},
            assets={
                "test": shared_test,
                "style": ["style.css", {"filename": "/abs/theme.css"}],
                "script": [],
                "image": ["ignored.png"],
            },
        )

        await builder.build_one(record)

        assert builder.io.get_service("ping")(None) == "pong"
        assert builder.injector.get("style") == [
            AssetDefinition(filename="/plugins/foo/style.css", test=shared_test),
            AssetDefinition(filename="/abs/theme.css", test=shared_test),
        ]
        assert builder.injector.get("script") == []
        assert builder.injector.get("image") == []

    @pytest.mark.asyncio
    async def test_option_change_receives_only_affected_watch_keys(self, builder, config):
        calls = []
        record = make_record(
            "watcher",
            watches=["port", "cors", "logger.level"],
            hooks={"on_option_change": lambda **kwargs: calls.append(kwargs)},
        )
        await builder.build_one(record)

        config.set("logger.level", "debug")
        config.set("unwatched", 1)

        assert len(calls) == 1
        assert calls[0]["keys"] == ["logger.level"]
        assert calls[0]["prev_config"]["logger"]["level"] == "warning"
        assert calls[0]["config"]["logger"]["level"] == "debug"

    @pytest.mark.asyncio
    async def test_async_option_change_is_scheduled(self, builder, config):
        seen = []

        async def on_option_change(keys, prev_config, config):
            seen.append(keys)

        await builder.build_one(make_record("async-watcher", watches=["port"], hooks={"on_option_change": on_option_change}))

        config.set("port", 9000)
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert seen == [["port"]]

    @pytest.mark.asyncio
    async def test_failing_option_change_does_not_block_other_watchers(self, builder, config, caplog):
        def broken(keys, prev_config, config):
            raise RuntimeError("watcher bug")

        calls = []
        await builder.build_one(make_record("a", watches=["port"], hooks={"on_option_change": broken}))
        await builder.build_one(
            make_record("b", watches=["port"], hooks={"on_option_change": lambda **kwargs: calls.append(kwargs["keys"])})
        )

        config.set("port", 9001)

        assert calls == [["port"]]
        assert "Plugin 'a' on_option_change failed: watcher bug" in caplog.text

    def test_async_option_change_failure_without_loop_is_logged(self, builder, config, caplog):
        async def broken(keys, prev_config, config):
            raise RuntimeError("async watcher bug")

        asyncio.run(builder.build_one(make_record("async-broken", watches=["port"], hooks={"on_option_change": broken})))

        config.set("port", 9002)

        assert config.get("port") == 9002
        assert "Plugin 'async-broken' on_option_change failed: async watcher bug" in caplog.text

    @pytest.mark.asyncio
    async def test_route_middleware_gets_scoped_or_host_config(self, builder, config):
        seen = {}

        def on_route_for(name):
            async def on_route(ctx, call_next, config, logger):
                seen[name] = config
                return await call_next()
            return on_route

        builtin = make_record("builtin", trusted=True, hooks={"on_route": on_route_for("builtin")}, priority=10)
        third_party = make_record("third", hooks={"on_route": on_route_for("third")}, options={"size": 3})
        await builder.build_one(builtin)
        await builder.build_one(third_party)

        assert builder.middleware.names() == ["builtin", "third"]
        assert builder.middleware.get("builtin").priority == 10

        chain = builder.middleware.compose(config)
        reached = []

        async def final():
            reached.append(True)

        await chain(RequestContext(request=None), final)

        assert seen["builtin"] is config
        assert seen["third"] is third_party.config
        assert seen["third"].get("size") == 3
        assert reached == [True]

    @pytest.mark.asyncio
    async def test_on_create_receives_collaborators(self, builder, config):
        received = {}

        async def on_create(**kwargs):
            await asyncio.sleep(0)
            received.update(kwargs)

        trusted = make_record("trusted", trusted=True, hooks={"on_create": on_create})
        await builder.build_one(trusted)

        assert received["config"] is config
        assert received["middleware"] is builder.middleware
        assert received["injector"] is builder.injector
        assert received["events"] is builder.events
        assert received["io"] is builder.io
        assert received["logger"].name == "plugin.trusted"

        third = make_record("third", hooks={"on_create": lambda **kwargs: received.update(kwargs)})
        await builder.build_one(third)

        assert received["config"] is third.config

    @pytest.mark.asyncio
    async def test_registrations_survive_on_create_failure(self, builder):
        def failing_on_create(**kwargs):
            raise RuntimeError("cannot start")

        record = make_record(
            "fragile",
            services={"fragile.ping": lambda payload: "pong"},
            hooks={"on_route": lambda ctx, call_next, config, logger: None, "on_create": failing_on_create},
        )

        with pytest.raises(BuildError, match="cannot start"):
            await builder.build_one(record)

        assert builder.io.get_service("fragile.ping") is not None
        assert builder.middleware.get("fragile") is not None


class TestBuild:
    """Tests for the concurrent PluginBuilder.build."""

    @pytest.mark.asyncio
    async def test_failure_does_not_cancel_or_roll_back_siblings(self, builder, registry, tmp_path):
        finished = []

        async def slow_on_create(**kwargs):
            await asyncio.sleep(0.05)
            finished.append("steady")

        async def failing_on_create(**kwargs):
            raise RuntimeError("boom")

        async def on_route(ctx, call_next, config, logger):
            ctx.state["steady"] = True
            return await call_next()

        steady = make_record(
            "steady",
            services={"steady.echo": lambda payload: payload},
            assets={"script": ["client.js"]},
            hooks={"on_route": on_route, "on_create": slow_on_create},
        )
        broken = make_record("broken", hooks={"on_create": failing_on_create})

        async def factory_for(record):
            return record

        await registry.get_or_resolve("steady", lambda: factory_for(steady))
        await registry.get_or_resolve("broken", lambda: factory_for(broken))

        with pytest.raises(BuildError) as exc_info:
            await builder.build()

        assert exc_info.value.name == "broken"
        assert "boom" in str(exc_info.value)

        # the sibling keeps running after the aggregate failure
        await asyncio.sleep(0.1)
        assert finished == ["steady"]

        assert await builder.io.call("steady.echo", "hi") == "hi"
        assert [a.filename for a in builder.injector.get("script")] == ["/plugins/foo/client.js"]

        ctx = RequestContext(request=None)
        await builder.middleware.compose(builder.config)(ctx)
        assert ctx.state["steady"] is True

    @pytest.mark.asyncio
    async def test_build_runs_plugins_concurrently(self, builder, registry):
        order = []

        def on_create_for(name, delay):
            async def on_create(**kwargs):
                order.append(f"start {name}")
                await asyncio.sleep(delay)
                order.append(f"end {name}")
            return on_create

        for name, delay in (("a", 0.03), ("b", 0.01)):
            record = make_record(name, hooks={"on_create": on_create_for(name, delay)})

            async def factory(record=record):
                return record

            await registry.get_or_resolve(name, factory)

        await builder.build()

        assert order == ["start a", "start b", "end b", "end a"]
