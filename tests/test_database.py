"""Tests for pool configuration presets."""

from shared.database import DatabaseManager, PoolConfig


class TestPoolConfig:
    def test_api_preset(self) -> None:
        cfg = PoolConfig.for_service("api")
        assert (cfg.min_size, cfg.max_size) == (1, 10)

    def test_unknown_service_uses_defaults(self) -> None:
        assert PoolConfig.for_service("worker") == PoolConfig()

    def test_overrides_and_unknown_keys(self) -> None:
        cfg = PoolConfig.for_service("scripts", ssl="require", not_a_field=1)
        assert cfg.ssl == "require"
        assert cfg.max_retries == 1

    def test_ssl_only_passed_when_set(self) -> None:
        assert "ssl" not in PoolConfig().pool_kwargs("postgresql://x")
        assert PoolConfig(ssl="require").pool_kwargs("postgresql://x")["ssl"] == "require"


class TestDatabaseManager:
    def test_not_connected_until_connect(self) -> None:
        manager = DatabaseManager("postgresql://x")
        assert manager.is_connected is False

    async def test_disconnect_without_pool_is_noop(self) -> None:
        manager = DatabaseManager("postgresql://x")
        await manager.disconnect()
        assert manager.is_connected is False
