"""
Tests for the module registry, per-context binding and the script surface.
"""
import pytest

import vault_session
from vault_session import (
    MODULE_NAME,
    ConfigurationError,
    ExecutionContext,
    ModuleInstance,
    ModuleRegistry,
    RegistrationError,
    RootModule,
    ScriptVault,
    UninitializedClientError,
    registry,
)


ADDRESS = "http://vault.local:8200"


class HostError(Exception):
    """Exception type of a pretend scripting runtime."""


def host_throw(err):
    raise HostError(f"GoError: {err}") from err


@pytest.fixture
def root(config, factory):
    return RootModule(config=config, client_factory=factory)


@pytest.fixture
def modules(root):
    reg = ModuleRegistry()
    reg.register(MODULE_NAME, root)
    return reg


# --- Test Registry ---

class TestModuleRegistry:

    def test_package_registers_module(self):
        """Test importing the package registers the Vault module."""
        assert MODULE_NAME in registry
        assert isinstance(registry.get(MODULE_NAME), RootModule)

    def test_register_twice_is_fatal(self, modules, root):
        with pytest.raises(RegistrationError):
            modules.register(MODULE_NAME, root)

    def test_register_twice_on_global_registry(self):
        with pytest.raises(RegistrationError):
            vault_session.registry.register(MODULE_NAME, RootModule())

    def test_register_empty_name(self, root):
        with pytest.raises(RegistrationError):
            ModuleRegistry().register("", root)

    def test_unknown_module(self, modules):
        with pytest.raises(KeyError):
            modules.create_binding("x/unknown", ExecutionContext())

    def test_names(self, modules):
        assert modules.names() == [MODULE_NAME]

    def test_create_binding(self, modules, context):
        instance = modules.create_binding(MODULE_NAME, context)
        assert isinstance(instance, ModuleInstance)
        assert instance.context is context
        assert isinstance(instance.exports()["default"], ScriptVault)


# --- Test Binding ---

class TestModuleInstance:

    def test_one_session_per_context(self, modules):
        """Test each context gets its own session."""
        with ExecutionContext() as a, ExecutionContext() as b:
            vault_a = modules.create_binding(MODULE_NAME, a).vault
            vault_b = modules.create_binding(MODULE_NAME, b).vault
            assert vault_a.session is not vault_b.session
            assert vault_a.session.context is a
            assert vault_b.session.context is b

    def test_default_export_is_stable(self, modules, context):
        instance = modules.create_binding(MODULE_NAME, context)
        assert instance.exports()["default"] is instance.exports()["default"]

    def test_vault_constructor(self, modules, context, factory):
        """Test the named Vault(address) export returns a set up client."""
        instance = modules.create_binding(MODULE_NAME, context)
        vault = instance.exports()["named"]["Vault"](ADDRESS)
        assert isinstance(vault, ScriptVault)
        assert vault.session.address == ADDRESS
        assert vault.session is not instance.vault.session
        assert factory.last.url == ADDRESS

    def test_vault_constructor_bad_address(self, modules, context):
        instance = modules.create_binding(MODULE_NAME, context)
        with pytest.raises(ConfigurationError):
            instance.new_vault("not-an-address")

    def test_context_end_releases_session(self, modules):
        ctx = ExecutionContext()
        vault = modules.create_binding(MODULE_NAME, ctx).vault
        vault.setup(ADDRESS)
        ctx.close()
        assert vault.session.initialized is False


# --- Test Script Surface ---

class TestScriptVault:

    def test_write_then_read_scenario(self, modules, context, factory):
        """Test setup, AppRole login and write as a script would."""
        echoed = {"version": 1}
        factory.behavior.responses[("write", "secret/data/app")] = {"data": echoed}
        vault = modules.create_binding(MODULE_NAME, context).exports()["default"]

        vault.setup(ADDRESS)
        vault.appRoleLogin("role-1", "secret-1", "")
        result = vault.write("secret/data/app", {"user": "a", "pass": "b"})

        assert vault.session.token == "t-123"
        assert result == echoed
        assert factory.last.calls[0][1]["mount_point"] == "approle"

    def test_camel_case_surface(self, modules, context, factory):
        vault = modules.create_binding(MODULE_NAME, context).vault
        vault.setup(ADDRESS)
        vault.setToken("root")
        vault.kubernetesLogin("jwt", "my-role", "")
        factory.behavior.responses[("list", "secret/metadata")] = {"data": {"keys": ["a"]}}

        assert vault.read("secret/data/missing") is None
        assert vault.list("secret/metadata") == {"keys": ["a"]}
        assert vault.delete("secret/data/app") is None
        assert factory.last.calls[0][1]["jwt"] == "jwt"

    def test_errors_propagate_without_throw_hook(self, modules, context):
        vault = modules.create_binding(MODULE_NAME, context).vault
        with pytest.raises(UninitializedClientError):
            vault.read("secret/data/app")

    def test_errors_go_through_throw_hook(self, modules):
        """Test the host throw hook turns errors into host exceptions."""
        with ExecutionContext(throw=host_throw) as ctx:
            vault = modules.create_binding(MODULE_NAME, ctx).vault
            with pytest.raises(HostError, match="not initialized") as exc:
                vault.setToken("root")
            assert isinstance(exc.value.__cause__, UninitializedClientError)

    def test_kubernetes_missing_file_through_hook(self, modules):
        with ExecutionContext(throw=host_throw) as ctx:
            vault = modules.create_binding(MODULE_NAME, ctx).vault
            vault.setup(ADDRESS)
            with pytest.raises(HostError, match="service account token"):
                vault.kubernetesLogin("", "my-role", "")

    def test_invalid_environment_through_hook(self, factory, monkeypatch):
        """Test bad env settings reach the script as a host exception."""
        monkeypatch.setenv("VAULT_CLIENT_TIMEOUT", "soon")
        reg = ModuleRegistry()
        reg.register(MODULE_NAME, RootModule(client_factory=factory))
        with ExecutionContext(throw=host_throw) as ctx:
            vault = reg.create_binding(MODULE_NAME, ctx).vault
            with pytest.raises(HostError) as exc:
                vault.setup(ADDRESS)
            assert isinstance(exc.value.__cause__, ConfigurationError)
            assert factory.clients == []

    def test_non_string_login_through_hook(self, modules):
        """Test wrong argument types reach the script as a host exception."""
        with ExecutionContext(throw=host_throw) as ctx:
            vault = modules.create_binding(MODULE_NAME, ctx).vault
            vault.setup(ADDRESS)
            with pytest.raises(HostError) as exc:
                vault.appRoleLogin(12345, "secret-1", "")
            assert isinstance(exc.value.__cause__, ConfigurationError)
