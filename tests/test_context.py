import pytest

from gotenberg.context import Context, ModuleLoadError
from gotenberg.flags import FlagSet, ParsedFlags
from gotenberg.modules import ModuleDescriptor, Provisioner, Validator


class _ProvisionedModule:
    def __init__(self, error=None):
        self.error = error
        self.provision_calls = 0

    def descriptor(self):
        return ModuleDescriptor(id="foo", new=lambda: self)

    def provision(self, ctx):
        self.provision_calls += 1
        if self.error is not None:
            raise self.error


class _ValidatedModule:
    def __init__(self, error=None):
        self.error = error

    def descriptor(self):
        return ModuleDescriptor(id="foo", new=lambda: self)

    def validate(self):
        if self.error is not None:
            raise self.error


def test_module_provision_error():
    mod = _ProvisionedModule(RuntimeError("foo"))
    ctx = Context(ParsedFlags(), [mod.descriptor()])
    with pytest.raises(ModuleLoadError, match="provision module foo: foo"):
        ctx.module(Provisioner)


def test_module_two_instead_of_one():
    mod = _ProvisionedModule()
    ctx = Context(ParsedFlags(), [mod.descriptor(), mod.descriptor()])
    with pytest.raises(ModuleLoadError, match="one and only one"):
        ctx.module(Provisioner)


def test_module_success():
    mod = _ProvisionedModule()
    ctx = Context(ParsedFlags(), [mod.descriptor()])
    assert ctx.module(Provisioner) is mod
    assert mod.provision_calls == 1


def test_modules_provision_error():
    mod = _ProvisionedModule(RuntimeError("foo"))
    ctx = Context(ParsedFlags(), [mod.descriptor()])
    with pytest.raises(ModuleLoadError):
        ctx.modules(Provisioner)


def test_modules_same_descriptor_twice():
    mod = _ProvisionedModule()
    ctx = Context(ParsedFlags(), [mod.descriptor(), mod.descriptor()])
    assert ctx.modules(Provisioner) == [mod, mod]
    assert mod.provision_calls == 1


def test_modules_one_module_cached():
    mod = _ProvisionedModule()
    ctx = Context(ParsedFlags(), [mod.descriptor()])
    assert ctx.modules(Provisioner) == [mod]
    assert ctx.modules(Provisioner) == [mod]
    assert mod.provision_calls == 1
    assert ctx.module_instances() == {"foo": mod}


def test_modules_validation_error():
    mod = _ValidatedModule(RuntimeError("foo"))
    ctx = Context(ParsedFlags(), [mod.descriptor()])
    with pytest.raises(ModuleLoadError, match="validate module foo: foo"):
        ctx.modules(Validator)
    assert ctx.module_instances() == {}


def test_modules_validation_success():
    mod = _ValidatedModule()
    ctx = Context(ParsedFlags(), [mod.descriptor()])
    assert ctx.modules(Validator) == [mod]


def test_modules_kind_not_implemented():
    mod = _ValidatedModule()
    ctx = Context(ParsedFlags(), [mod.descriptor()])
    assert ctx.modules(Provisioner) == []


def test_parsed_flags():
    fs = FlagSet("tests")
    fs.add_string("foo", "bar", "")
    flags = ParsedFlags(fs)
    ctx = Context(flags, [])
    assert ctx.parsed_flags().must_string("foo") == "bar"