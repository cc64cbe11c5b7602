from gotenberg import debug as debug_module
from gotenberg.context import Context
from gotenberg.debug import DebugInfo, build_debug, debug, get_version, reset_debug, set_version
from gotenberg.flags import FlagSet, ParsedFlags
from gotenberg.modules import Module, ModuleDescriptor


class _PlainModule:
    def descriptor(self):
        return ModuleDescriptor(id="foo", new=lambda: self)


class _DebuggableModule:
    def descriptor(self):
        return ModuleDescriptor(id="bar", new=lambda: self)

    def debug(self):
        return {"foo": "bar"}


def test_build_debug():
    reset_debug()
    assert debug() == DebugInfo()

    fs = FlagSet("gotenberg")
    fs.add_string("foo", "bar", "Set foo")
    mod1 = _PlainModule()
    mod2 = _DebuggableModule()
    ctx = Context(ParsedFlags(fs), [mod1.descriptor(), mod2.descriptor()])

    assert ctx.modules(Module) == [mod1, mod2]

    build_debug(ctx)

    expect = DebugInfo(
        version=get_version(),
        architecture=debug_module.ARCHITECTURE,
        modules=["bar", "foo"],
        modules_additional_data={"bar": {"foo": "bar"}},
        flags={"foo": "bar"},
    )
    assert debug() == expect
    reset_debug()
    assert debug() == DebugInfo()


def test_debug_returns_copy():
    reset_debug()
    ctx = Context(ParsedFlags(FlagSet("gotenberg")), [_PlainModule().descriptor()])
    ctx.modules(Module)
    build_debug(ctx)
    first = debug()
    first.modules.append("mutated")
    assert debug().modules == ["foo"]
    reset_debug()


def test_version_roundtrip():
    original = get_version()
    try:
        set_version("8.0.0")
        assert get_version() == "8.0.0"
        reset_debug()
        build_debug(Context(ParsedFlags(FlagSet("gotenberg")), []))
        assert debug().version == "8.0.0"
    finally:
        set_version(original)
        reset_debug()
    assert get_version() == original