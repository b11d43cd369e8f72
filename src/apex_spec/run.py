# run.py
# Demo entry point. Config and wiring only; no logic lives here.
#
# Modes and the registry come from the environment (see config.py).

from apex_spec import display
from apex_spec.config import load_settings
from apex_spec.errors import ApexError
from apex_spec.interpreter import ExecutionState
from apex_spec.pipeline import run_with_settings
from apex_spec.semantics import Semantics

# Sample documents: one clean, one relying on tolerant parsing, one rejected.
DOCUMENTS = {
    "Caching layer": """\
TASK
Implement caching layer

GOALS
Reduce latency
Improve throughput

PLAN
Read current request handlers
Search for hot paths
Edit handlers to use the cache
Run benchmark_run and compare

CONSTRAINTS
No breaking API changes
No mocks
< 300 LOC

VALIDATION
Latency reduced by 50%

TOOLS
read_file(path)
code_search "cache"
edit_file(path, changes)
mcp__bench__benchmark_run()

META
version=1.1
""",
    # Lowercase headers: repaired in tolerant mode, plain content in strict mode.
    "Lowercase headers": """\
task
Fix search parameter

plan
Scan code
Fix param
Run tests

constraints
real dbs only
""",
    "Two tasks": """\
TASK
First objective

TASK
Second objective
""",
}


def main() -> None:
    settings = load_settings()
    display.banner(settings.parse_mode.value, settings.validation_mode.value)

    for name, text in DOCUMENTS.items():
        display.document_received(name)
        try:
            validated, plan = run_with_settings(text, settings)
        except ApexError as exc:
            display.validation_error(exc)
            continue

        display.parse_fixes(validated.meta_fixes)
        display.warnings(validated.warnings)
        display.plan_built(plan)
        display.semantics_summary(Semantics.from_validated(validated))

        # Fresh out-of-band state, first step marked as started.
        state = ExecutionState.for_plan(plan)
        if not plan.is_empty():
            state.start_step(0)
        display.execution_state(plan, state)


if __name__ == "__main__":
    main()
