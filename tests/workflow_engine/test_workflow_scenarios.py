"""End-to-end scenarios over the bundled workflows and shared stores."""

from pathlib import Path

import pytest

from taskflow_engine.workflow.choices import DeferredChoicePresenter, ScriptedChoicePresenter
from taskflow_engine.workflow.effects import create_demo_dispatcher
from taskflow_engine.workflow.engine import RunStatus, WorkflowEngine
from taskflow_engine.workflow.loader import WorkflowLoader, WorkflowParser
from taskflow_engine.workflow.validator import ValidationMode
from taskflow_engine.workflow.variables import MapVariableStore

PROJECT_ROOT = Path(__file__).parent.parent.parent


class TestGoldScenario:
    """Test the setVar, addGold, log sequence."""

    def test_gold_scenario(self):
        """Test that gold ends at 8 and exactly one message is logged."""
        definition = WorkflowParser.parse_yaml(
            """
id: gold
tasks:
  - {id: s, type: setVar, key: gold, value: "5"}
  - {id: e, type: effect, effect: addGold, amount: "3"}
  - {id: l, type: log, message: "gold=${gold}"}
  - {id: x, type: end}
"""
        )
        messages = []
        store = MapVariableStore()

        run = WorkflowEngine.from_definition(definition).run(
            effect_dispatcher=create_demo_dispatcher(), store=store, message_sink=messages.append
        )

        assert run.status is RunStatus.COMPLETED
        assert store.get("gold") == "8"
        assert messages == ["gold=8"]


class TestSharedStoreAcrossWorkflows:
    """Test that a later workflow sees what an earlier one wrote."""

    QUEST_A = """
id: a
tasks:
  - {id: a1, type: effect, effect: setFlag, key: questA_done, value: true}
"""
    QUEST_B = """
<workflow id="b">
  <task id="check" type="branch" ifEqualsKey="questA_done" ifEqualsValue="true" thenGo="b_ok" elseGo="b_fail"/>
  <task id="b_fail" type="log" message="fail"/>
  <task id="b_fail_end" type="end"/>
  <task id="b_ok" type="log" message="ok"/>
</workflow>
"""

    def test_run_b_takes_b_ok_after_run_a(self):
        """Test the questA_done hand-over from run A to run B."""
        store = MapVariableStore()
        dispatcher = create_demo_dispatcher()

        WorkflowEngine.from_definition(WorkflowParser.parse_yaml(self.QUEST_A)).run(
            effect_dispatcher=dispatcher, store=store
        )
        run_b = WorkflowEngine.from_definition(WorkflowParser.parse_xml(self.QUEST_B)).run(store=store)

        assert "b_ok" in run_b.history
        assert run_b.messages == ["ok"]

    def test_run_b_alone_takes_b_fail(self):
        """Test that without run A the branch falls through to elseGo."""
        run_b = WorkflowEngine.from_definition(WorkflowParser.parse_xml(self.QUEST_B)).run()
        assert run_b.messages == ["fail"]


class TestBundledWorkflows:
    """Test the workflows shipped under .taskflow/workflows."""

    def setup_method(self):
        """Set up a loader rooted at the project."""
        self.loader = WorkflowLoader(project_root=str(PROJECT_ROOT), validation_mode=ValidationMode.FAIL_FAST)

    def test_quest_a_then_quest_b(self):
        """Test helping the traveler and then taking the river route."""
        store = MapVariableStore()
        dispatcher = create_demo_dispatcher()
        presenter = ScriptedChoicePresenter(["1", "river"])

        run_a = WorkflowEngine.from_definition(self.loader.load("quest_a")).run(presenter, dispatcher, store)
        run_b = WorkflowEngine.from_definition(self.loader.load("quest_b")).run(presenter, dispatcher, store)

        assert run_a.messages[-1] == "The traveler thanks you, Forest Walker. gold=30"
        assert "b_ok" in run_b.history
        assert run_b.messages == ["Welcome, Forest Walker. You carry 30 gold.", "Took the river route. gold=40"]
        assert store.get("questA_done") == "true"
        assert store.get("route") == "river"

    def test_quest_b_locked_when_traveler_refused(self):
        """Test that walking away in quest_a keeps quest_b sealed."""
        store = MapVariableStore()
        presenter = ScriptedChoicePresenter(["2"])
        dispatcher = create_demo_dispatcher()

        run_a = WorkflowEngine.from_definition(self.loader.load("quest_a")).run(presenter, dispatcher, store)
        run_b = WorkflowEngine.from_definition(self.loader.load("quest_b")).run(presenter, dispatcher, store)

        assert run_a.messages[-1] == "You leave the traveler behind."
        assert "b_locked" in run_b.history
        assert "gold" not in store

    def test_tutorial_loops_once(self):
        """Test the choice-free tutorial workflow."""
        definition = self.loader.load("tutorial")
        run = WorkflowEngine.from_definition(definition).run(store=MapVariableStore({"player": "Ada"}))

        assert definition.first_id == "setup"
        assert run.messages == ["Hello, Ada!", "Running the second lap", "Done after the second lap"]

    def test_quest_a_suspends_with_deferred_presenter(self):
        """Test the same workflow driven by a deferred presenter."""
        presenter = DeferredChoicePresenter()
        run = WorkflowEngine.from_definition(self.loader.load("quest_a")).start(
            presenter, create_demo_dispatcher(), MapVariableStore()
        )

        assert run.status is RunStatus.WAITING
        presenter.answer("yes")
        assert run.advance() is RunStatus.COMPLETED
        assert run.store.get("player_title") == "Forest Walker"

    @pytest.mark.parametrize("name", ["quest_a", "quest_b", "tutorial"])
    def test_bundled_workflows_listed(self, name):
        """Test that every bundled workflow is discoverable by name."""
        names = [workflow["name"] for workflow in self.loader.list_available_workflows(include_global=False)]
        assert name in names
