"""Tests for the function registry, built-ins and module loading."""

import logging

import pytest

from featherbone.core.errors import BusinessRuleError, NotFoundError
from featherbone.registry import (
    FunctionRegistry,
    Method,
    RegisteredFunction,
    TriggerPhase,
    load_function_modules,
    register_builtin_functions,
)


async def noop(request):
    return None


async def other(request):
    return "other"


class FakeRequest:
    def __init__(self, data=None):
        self.data = data or {}


# =============================================================================
# Method
# =============================================================================


class TestMethod:
    def test_coerce_is_case_insensitive(self):
        assert Method.coerce("patch") is Method.PATCH
        assert Method.coerce(Method.GET) is Method.GET

    def test_coerce_rejects_unknown(self):
        with pytest.raises(ValueError, match="Unknown method 'FETCH'"):
            Method.coerce("FETCH")

    def test_only_get_is_read_only(self):
        assert not Method.GET.is_mutating
        assert all(m.is_mutating for m in Method if m is not Method.GET)


# =============================================================================
# Registration and lookup
# =============================================================================


class TestFunctionRegistry:
    def test_register_and_lookup(self):
        registry = FunctionRegistry()
        registry.register("POST", "closePeriod", noop)

        assert registry.lookup("POST", "closePeriod") is noop
        assert registry.lookup(Method.POST, "closePeriod") is noop
        assert registry.is_registered("POST", "closePeriod")

    def test_lookup_is_keyed_by_method(self):
        registry = FunctionRegistry()
        registry.register("GET", "totals", noop)

        assert registry.lookup("POST", "totals") is None
        assert not registry.is_registered("POST", "totals")

    def test_last_registration_wins(self, caplog):
        registry = FunctionRegistry()
        registry.register("GET", "version", noop)

        with caplog.at_level(logging.WARNING, logger="featherbone.registry.registry"):
            registry.register("GET", "version", other)

        assert registry.lookup("GET", "version") is other
        assert "Replacing registered function GET version" in caplog.text

    def test_lookup_for_phase(self):
        registry = FunctionRegistry()
        registry.register("POST", "Invoice", noop, TriggerPhase.BEFORE)

        assert registry.lookup_for_phase("POST", "Invoice", TriggerPhase.BEFORE) is noop
        assert registry.lookup_for_phase("POST", "Invoice", TriggerPhase.AFTER) is None

    def test_plain_function_is_not_a_trigger(self):
        registry = FunctionRegistry()
        registry.register("POST", "Invoice", noop)

        assert registry.lookup_for_phase("POST", "Invoice", TriggerPhase.BEFORE) is None
        assert registry.lookup_for_phase("POST", "Invoice", TriggerPhase.AFTER) is None

    def test_decorator_registers(self):
        registry = FunctionRegistry()

        @registry.function("PATCH", "Document", trigger=TriggerPhase.AFTER)
        async def touch(request):
            return None

        entry = registry.list_registered()[Method.PATCH]["Document"]
        assert entry == RegisteredFunction(Method.PATCH, "Document", touch, TriggerPhase.AFTER)
        assert entry.is_trigger

    def test_registered_functions_groups_by_method(self):
        registry = FunctionRegistry()
        registry.register("GET", "b", noop)
        registry.register("GET", "a", noop)
        registry.register("DELETE", "purge", noop)

        listing = registry.registered_functions()
        assert listing["GET"] == ["a", "b"]
        assert listing["DELETE"] == ["purge"]
        assert listing["PUT"] == []

    def test_list_registered_is_a_copy(self):
        registry = FunctionRegistry()
        registry.register("GET", "a", noop)

        registry.list_registered()[Method.GET].clear()
        assert registry.is_registered("GET", "a")

    def test_clear(self):
        registry = FunctionRegistry()
        registry.register("GET", "a", noop)
        registry.clear()
        assert not registry.is_registered("GET", "a")


# =============================================================================
# Built-in functions
# =============================================================================


class TestBuiltinFunctions:
    @pytest.fixture
    def builtins(self, catalog):
        registry = FunctionRegistry()
        register_builtin_functions(registry, catalog)
        return registry

    def test_registers_read_only_functions(self, builtins):
        assert builtins.registered_functions()["GET"] == [
            "getCatalog", "getFeather", "registeredFunctions",
        ]

    @pytest.mark.asyncio
    async def test_get_feather(self, builtins):
        handler = builtins.lookup("GET", "getFeather")
        result = await handler(FakeRequest({"name": "Invoice"}))

        assert result["name"] == "Invoice"
        assert result["inherits"] == "Document"

    @pytest.mark.asyncio
    async def test_get_feather_requires_name(self, builtins):
        handler = builtins.lookup("GET", "getFeather")
        with pytest.raises(BusinessRuleError) as exc_info:
            await handler(FakeRequest())
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_get_feather_unknown(self, builtins):
        handler = builtins.lookup("GET", "getFeather")
        with pytest.raises(NotFoundError):
            await handler(FakeRequest({"name": "Frobnicator"}))

    @pytest.mark.asyncio
    async def test_get_catalog(self, builtins):
        result = await builtins.lookup("GET", "getCatalog")(FakeRequest())
        assert set(result) == {"Object", "Document", "Invoice", "Contact"}

    @pytest.mark.asyncio
    async def test_registered_functions_reflects_later_registrations(self, builtins):
        builtins.register("POST", "closePeriod", noop)
        result = await builtins.lookup("GET", "registeredFunctions")(FakeRequest())
        assert result["POST"] == ["closePeriod"]


# =============================================================================
# Module loading
# =============================================================================


class TestLoadFunctionModules:
    def test_module_registers_its_functions(self):
        registry = FunctionRegistry()
        load_function_modules(registry, ["sample_functions"])

        assert registry.lookup_for_phase("POST", "Contact", TriggerPhase.BEFORE) is not None
        assert registry.is_registered("GET", "contactCount")

    def test_module_without_register(self):
        with pytest.raises(TypeError, match="broken_functions"):
            load_function_modules(FunctionRegistry(), ["broken_functions"])

    def test_missing_module(self):
        with pytest.raises(ImportError):
            load_function_modules(FunctionRegistry(), ["no_such_function_module"])
