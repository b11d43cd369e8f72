import pytest
from pydantic import ValidationError
from apex_spec.interpreter import (
    ExecutionPlan,
    ExecutionState,
    ExecutionStep,
    StepStatus,
    ToolInvocation,
    build_execution_plan,
    match_tool_to_step,
)
from apex_spec.pipeline import parse_and_validate, parse_full

FULL_DOC = """TASK
Implement caching layer

GOALS
Reduce latency
Improve throughput

PLAN
Read current handlers
Search for hot paths
Edit handlers to use the cache
Run benchmark and compare

CONSTRAINTS
No breaking API changes
< 300 LOC

VALIDATION
Latency reduced by 50%

TOOLS
read_file(path)
code_search "cache"
edit_file(path, changes)
"""

# ---------------------------------------------------------------------------
# Plan construction
# ---------------------------------------------------------------------------

def test_full_document_plan():
    plan = parse_full(FULL_DOC)

    assert plan.task == "Implement caching layer"
    assert plan.goals == ["Reduce latency", "Improve throughput"]
    assert plan.constraints == ["no_breaking_api_changes", "300_loc"]
    assert plan.validation == ["Latency reduced by 50%"]
    assert [t.name for t in plan.available_tools] == ["read_file", "code_search", "edit_file"]
    assert plan.step_count() == 4

def test_keyword_binding_when_counts_differ():
    # Three tools, four steps: bind by name or shared verb.
    plan = parse_full(FULL_DOC)

    assert [s.tool.name if s.tool else None for s in plan.steps] == [
        "read_file",
        "code_search",
        "edit_file",
        None,
    ]
    assert plan.steps[1].tool.raw_arguments == '"cache"'

def test_positional_binding_when_counts_match():
    text = """TASK
Ship it

PLAN
Deploy to staging
Check dashboards

TOOLS
bash deploy.sh
web_fetch(url)
"""
    plan = parse_full(text)

    assert [s.tool.name for s in plan.steps] == ["bash", "web_fetch"]
    assert plan.steps[0].tool.raw_arguments == "deploy.sh"
    assert plan.tool_for_step(2).raw_arguments == "url"

def test_no_plan_and_no_tools():
    plan = parse_full("TASK\nThink about it")

    assert plan.is_empty()
    assert plan.step_count() == 0
    assert plan.available_tools == []
    assert plan.initial_steps() == []

def test_steps_without_tools_are_unbound():
    plan = parse_full("TASK\nx\nPLAN\nRead the docs\nWrite notes")
    assert [s.tool for s in plan.steps] == [None, None]

def test_sequential_dependencies():
    plan = parse_full(FULL_DOC)

    assert [s.step_number for s in plan.steps] == [1, 2, 3, 4]
    assert [s.depends_on for s in plan.steps] == [[], [1], [2], [3]]
    assert [s.step_number for s in plan.initial_steps()] == [1]
    assert [s.step_number for s in plan.dependents(1)] == [2]
    assert plan.dependents(4) == []

def test_tool_for_step_out_of_range():
    plan = parse_full(FULL_DOC)

    assert plan.tool_for_step(1).name == "read_file"
    assert plan.tool_for_step(0) is None
    assert plan.tool_for_step(5) is None

def test_build_from_validated_document():
    validated = parse_and_validate(FULL_DOC)
    plan = build_execution_plan(validated)

    assert plan.task == validated.task.line
    assert [s.description for s in plan.steps] == validated.plan.steps

# ---------------------------------------------------------------------------
# Tool matching
# ---------------------------------------------------------------------------

def test_match_by_tool_name_in_description():
    tools = [ToolInvocation(name="bash"), ToolInvocation(name="grep")]
    assert match_tool_to_step("Run grep over the logs", tools).name == "grep"

def test_match_by_shared_verb():
    tools = [ToolInvocation(name="vector_search")]
    assert match_tool_to_step("Search embeddings for duplicates", tools).name == "vector_search"

def test_match_first_declared_wins():
    tools = [ToolInvocation(name="code_search"), ToolInvocation(name="web_search")]
    assert match_tool_to_step("Search for references", tools).name == "code_search"

def test_match_none():
    tools = [ToolInvocation(name="bash")]
    assert match_tool_to_step("Deploy to production", tools) is None
    assert match_tool_to_step("anything", []) is None

def test_step_number_must_be_positive():
    with pytest.raises(ValidationError):
        ExecutionStep(step_number=0, description="bad")

# ---------------------------------------------------------------------------
# Execution state
# ---------------------------------------------------------------------------

def test_state_for_plan():
    state = ExecutionState.for_plan(parse_full(FULL_DOC))

    assert state.step_states == [StepStatus.PENDING] * 4
    assert state.tool_results == [None] * 4
    assert state.checkpoint == 0
    assert state.current_step() == 0
    assert not state.is_complete()
    assert not state.is_failed()

def test_state_transitions():
    state = ExecutionState.for_steps(3)

    state.start_step(0)
    assert state.step_states[0] is StepStatus.RUNNING

    state.complete_step(0, "found 3 handlers")
    assert state.step_states[0] is StepStatus.COMPLETE
    assert state.tool_results[0] == "found 3 handlers"
    assert state.current_step() == 1

    state.fail_step(1, "timeout")
    assert state.is_failed()
    assert state.error == "timeout"
    assert state.checkpoint == 1

    state.skip_step(2)
    assert state.is_complete()

def test_out_of_range_transitions_are_ignored():
    state = ExecutionState.for_steps(2)
    before = state.model_copy(deep=True)

    state.start_step(2)
    state.complete_step(5, "nope")
    state.fail_step(-1, "nope")
    state.skip_step(99)

    assert state == before

def test_pause_resume_and_validation():
    state = ExecutionState.for_steps(1)

    state.pause()
    assert state.paused
    state.resume()
    assert not state.paused

    state.record_validation(True)
    state.record_validation(False)
    assert state.validation_outcomes == [True, False]

def test_empty_state_is_complete():
    state = ExecutionState.for_steps(0)
    assert state.is_complete()
    assert not state.is_failed()

def test_state_is_independent_of_plan():
    plan = parse_full(FULL_DOC)
    snapshot = plan.model_copy(deep=True)
    state = ExecutionState.for_plan(plan)
    state.complete_step(0, "done")

    assert plan == snapshot
    assert isinstance(plan, ExecutionPlan)

def test_step_status_flags():
    assert {s for s in StepStatus if s.is_terminal()} == {
        StepStatus.COMPLETE,
        StepStatus.FAILED,
        StepStatus.SKIPPED,
    }
    assert {s for s in StepStatus if s.can_resume()} == {StepStatus.PENDING, StepStatus.FAILED}

def test_state_checkpoints_as_json():
    state = ExecutionState.for_steps(2)
    state.complete_step(0, "ok")
    state.pause()

    restored = ExecutionState.model_validate_json(state.model_dump_json())
    assert restored == state
    assert restored.step_states[0] is StepStatus.COMPLETE

# ---------------------------------------------------------------------------
# Binding properties
# ---------------------------------------------------------------------------

ROUND_TRIP_DOC = (
    "TASK\nImplement caching layer\n\n"
    "GOALS\nReduce latency\nImprove throughput\n\n"
    "PLAN\nAnalyze current performance\nIdentify hot paths\nImplement cache\nBenchmark results\n\n"
    "CONSTRAINTS\nNo breaking API changes\nMust pass existing tests\n\n"
    "VALIDATION\nLatency reduced by 50%\n\n"
    "TOOLS\nread_file(path)\nwrite_file(path, content)\nbenchmark_run()\n"
)

def test_round_trip_document_uses_keyword_binding():
    plan = parse_full(ROUND_TRIP_DOC)

    assert plan.task == "Implement caching layer"
    assert len(plan.goals) == 2
    assert plan.step_count() == 4
    assert plan.constraints == ["no_breaking_api_changes", "must_pass_existing_tests"]
    assert plan.validation == ["Latency reduced by 50%"]
    assert [t.name for t in plan.available_tools] == ["read_file", "write_file", "benchmark_run"]
    # Three tools for four steps: no positional binding, and no step text
    # names a tool or shares a verb with one.
    assert [s.tool for s in plan.steps] == [None, None, None, None]

@pytest.mark.parametrize("count", [0, 1, 3, 7])
def test_positional_binding_for_any_count(count):
    steps = "".join(f"Unrelated chore {n}\n" for n in range(count))
    tools = "".join(f"custom_tool_{n}\n" for n in range(count))
    text = "TASK\nx\n"
    if count:
        text += f"PLAN\n{steps}TOOLS\n{tools}"

    plan = parse_full(text)

    assert plan.step_count() == count
    assert [s.tool.name for s in plan.steps] == [f"custom_tool_{n}" for n in range(count)]

def test_search_step_binds_search_tool():
    tools = [ToolInvocation(name="grep_search")]
    assert match_tool_to_step("Search for function definitions", tools).name == "grep_search"

def test_bound_tools_are_copies():
    plan = parse_full("TASK\nx\nPLAN\nRead it\nTOOLS\nread_file(path)")
    bound = plan.steps[0].tool

    assert bound == plan.available_tools[0]
    assert bound is not plan.available_tools[0]

    bound.raw_arguments = "changed"
    assert plan.available_tools[0].raw_arguments == "path"

def test_keyword_bound_tools_are_copies():
    plan = parse_full(FULL_DOC)
    assert plan.steps[0].tool is not plan.available_tools[0]
