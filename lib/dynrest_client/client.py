from __future__ import annotations

from typing import Any

from .auth import AuthModule
from .config_types import ClientConfig
from .credentials import Credential, MemoryStorage, TokenStorage
from .errors import ConfigError
from .namespaces import DynamicModule, EntitiesModule, IntegrationsModule, check_dynamic_name
from .navigation import Navigator
from .transport import Transport


class ServiceRole:
    """Namespaces acting with the configured service token.

    The token lives in memory only and never touches the shared storage.
    """

    def __init__(self, transport: Transport):
        self._t = transport
        self.entities = EntitiesModule(transport)
        self.integrations = IntegrationsModule(transport)
        self.sso = DynamicModule("sso", transport)
        self.functions = DynamicModule("functions", transport)
        self.agents = DynamicModule("agents", transport)
        self.app_logs = DynamicModule("appLogs", transport)
        self._modules: dict[str, DynamicModule] = {
            "sso": self.sso,
            "functions": self.functions,
            "agents": self.agents,
            "appLogs": self.app_logs,
        }

    @property
    def transport(self) -> Transport:
        return self._t

    def namespace(self, name: str) -> DynamicModule:
        module = self._modules.get(name)
        if module is None:
            module = self._modules[name] = DynamicModule(name, self._t)
        return module

    def __getattr__(self, name: str) -> DynamicModule:
        check_dynamic_name(self, name)
        return self.namespace(name)

    def cleanup(self) -> None:
        return None


class DynrestClient:
    def __init__(
            self,
            cfg: ClientConfig,
            *,
            storage: TokenStorage | None = None,
            navigator: Navigator | None = None,
    ):
        if not (cfg.server_url or "").strip():
            raise ConfigError("server_url is required")
        self._cfg = cfg
        self._storage = storage if storage is not None else MemoryStorage()
        self._navigator = navigator if navigator is not None else Navigator()
        self._credential = Credential(self._storage, cfg.storage_key, cfg.token)
        self._t = Transport(cfg, self._credential, navigator=self._navigator)

        self.entities = EntitiesModule(self._t)
        self.integrations = IntegrationsModule(self._t)
        self.auth = AuthModule(self._t)
        service_credential = Credential(None, cfg.storage_key, cfg.token)
        self.as_service_role = ServiceRole(self._t.with_credential(service_credential))

        self._fixed: dict[str, Any] = {
            "entities": self.entities,
            "integrations": self.integrations,
            "auth": self.auth,
            "asServiceRole": self.as_service_role,
            "as_service_role": self.as_service_role,
        }
        self._modules: dict[str, DynamicModule] = {}

    @property
    def transport(self) -> Transport:
        return self._t

    @property
    def credential(self) -> Credential:
        return self._credential

    @property
    def navigator(self) -> Navigator:
        return self._navigator

    @property
    def storage(self) -> TokenStorage:
        return self._storage

    def namespace(self, name: str) -> Any:
        """Fixed module for well-known names, memoized ``DynamicModule`` otherwise.

        Attribute access only reaches names that are not client members, so
        ``transport``, ``credential``, ``navigator``, ``storage``, ``namespace``,
        ``set_token``, ``get_config``, ``cleanup`` and ``aclose`` need
        ``client["storage"]`` or ``client.namespace("storage")``.
        """
        fixed = self._fixed.get(name)
        if fixed is not None:
            return fixed
        module = self._modules.get(name)
        if module is None:
            module = self._modules[name] = DynamicModule(name, self._t)
        return module

    def __getattr__(self, name: str) -> Any:
        check_dynamic_name(self, name)
        return self.namespace(name)

    def __getitem__(self, name: str) -> Any:
        return self.namespace(name)

    def set_token(self, token: str | None) -> None:
        self._credential.set(token, persist=True)

    def get_config(self) -> dict[str, str]:
        return {"server_url": self._cfg.server_url}

    def cleanup(self) -> None:
        self._storage.remove_item(self._cfg.storage_key)

    async def aclose(self) -> None:
        await self._t.aclose()

    async def __aenter__(self) -> "DynrestClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def create_client(
        cfg: ClientConfig,
        *,
        storage: TokenStorage | None = None,
        navigator: Navigator | None = None,
) -> DynrestClient:
    return DynrestClient(cfg, storage=storage, navigator=navigator)
