# gotenberg

A small application framework for long-running services. Modules register
themselves, declare their command-line flags, are provisioned and validated
through a shared context, and the applications among them are started and
gracefully stopped by a single command.

## What is in the package

- `gotenberg.modules` – `ModuleDescriptor`, the module interfaces
  (`Module`, `Provisioner`, `Validator`, `App`, `SystemLogger`, `Debuggable`,
  `MetricsProvider`, with `Metric`), a `Registry`, and the application-wide
  `must_register_module` / `get_module_descriptors`. Registration raises
  `ModuleRegistrationError` for an empty ID, a missing or `None`-returning
  factory, or a duplicate ID.
- `gotenberg.context` – `Context`, which finds modules by interface
  (`modules(kind)`, `module(kind)` for exactly one), provisions and validates
  each once, and raises `ModuleLoadError` on failure.
- `gotenberg.flags` – `FlagSet` (string, string slice, bool, int, int64,
  float64 and duration flags, parsed from `--name=value` or `--name value`),
  `ParsedFlags` with `must_*` accessors and `must_deprecated_*` variants that
  prefer a deprecated flag when it was set explicitly, plus `parse_duration`,
  `format_duration` and `parse_bytes` (`"1MB"` is 1,000,000; `"1MiB"` is
  1,048,576). Errors are raised as `FlagError`.
- `gotenberg.env` – `string_env` and `int_env` for required environment
  variables, raising `EnvironmentVariableError`.
- `gotenberg.deadline` – `Deadline`, a time limit that can also be cancelled,
  with `DeadlineExceeded` and `Cancelled` errors.
- `gotenberg.filter` – `filter_deadline(allowed, denied, s, deadline)`, which
  raises `FilteredError` when a value fails the allow or deny expression and
  `DeadlineExceeded` when the deadline is done. Empty expressions are ignored.
- `gotenberg.alphanumeric` – `alphanumeric_sort`, ordering file names by a
  numeric prefix, else a number before the extension, else a trailing number;
  names without a number come last.
- `gotenberg.supervisor` – `ProcessSupervisor`, which runs tasks one at a
  time against a `Process`, starts it on first use, restarts it when unhealthy
  or after `max_req_limit` tasks, and raises `MaximumQueueSizeExceededError`
  when more than `max_queue_size` tasks are waiting.
- `gotenberg.command` – `Command`, which runs a program in its own process
  group; `exec()` returns 0 or raises `CommandError` carrying an exit code,
  and `kill()` kills the whole group.
- `gotenberg.garbage` – `garbage_collect`, removing expired entries directly
  under a directory whose names contain given substrings.
- `gotenberg.filesystem` – `FileSystem`, for unique directories under a
  unique working directory in the system's temporary directory.
- `gotenberg.debug` – `build_debug` and `debug()`, collecting version,
  architecture, loaded module IDs, modules' debug data and flag values into a
  `DebugInfo`.
- `gotenberg.logger` – the `LoggerProvider` interface and `LeveledLogger`,
  an adapter over a standard `logging.Logger`.
- `gotenberg.pdfengine` – the `PdfEngine` and `PdfEngineProvider`
  interfaces, `SplitMode`, `PdfFormats` and the related errors.

## Installation

```
pip install .
```

## Writing a module

```python
from gotenberg.cli import main
from gotenberg.flags import FlagSet
from gotenberg.modules import ModuleDescriptor, must_register_module


class Greeter:
    def descriptor(self):
        fs = FlagSet("greeter")
        fs.add_string("greeter-name", "world", "Who to greet")
        return ModuleDescriptor(id="greeter", flag_set=fs, new=Greeter)

    def provision(self, ctx):
        self.name = ctx.parsed_flags().must_string("greeter-name")

    def start(self):
        pass

    def startup_message(self):
        return f"hello, {self.name}"

    def stop(self, deadline):
        pass


must_register_module(Greeter())

if __name__ == "__main__":
    raise SystemExit(main())
```

## Running

```
gotenberg --gotenberg-graceful-shutdown-duration=10s
```

The command prints a banner and the registered modules, starts every module
that implements `App`, prints the messages of every `SystemLogger`, builds
the debug data unless `--gotenberg-build-debug-data=false`, then waits for
SIGINT or SIGTERM. It then stops the applications within the graceful
shutdown duration (30s by default); a second SIGINT cancels that wait.

Every flag may also be set from the environment: the flag name upper-cased
with dashes replaced by underscores, for example
`GOTENBERG_GRACEFUL_SHUTDOWN_DURATION=10s`. List flags take comma-separated
values from the environment and replace the whole list.

## What it does not do

The package ships no modules of its own. The `gotenberg` command on its own
registers nothing, so it only waits for a signal and exits; modules must be
registered (as in the example above, before calling `gotenberg.cli.main`)
for it to do any work. There is no HTTP server and no PDF engine:
`PdfEngine` is an interface only, with no implementation that converts,
merges or splits documents.

## Tests

```
pip install .[test]
pytest
```