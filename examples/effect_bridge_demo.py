#!/usr/bin/env python3
"""
Demo script for the task-flow effect bridge

Runs quest_a and then quest_b over one shared variable store, so quest_b can
branch on what quest_a wrote (questA_done, gold, player_title).

Usage:
    python examples/effect_bridge_demo.py            # answer choices on the console
    python examples/effect_bridge_demo.py 1 2        # scripted answers, one per choice
"""

import logging
import sys

from taskflow_engine.workflow.choices import ConsoleChoicePresenter, ScriptedChoicePresenter
from taskflow_engine.workflow.effects import create_demo_dispatcher
from taskflow_engine.workflow.engine import WorkflowEngine
from taskflow_engine.workflow.loader import WorkflowLoader
from taskflow_engine.workflow.validator import ValidationMode
from taskflow_engine.workflow.variables import MapVariableStore, VariableStore


def print_snapshot(title: str, store: VariableStore):
    """Print every variable in the store"""
    print()
    print("=" * 50)
    print(f"[Debug] {title} variables snapshot:")
    snapshot = store.snapshot()
    if not snapshot:
        print("(empty)")
    for key, value in snapshot.items():
        print(f"{key}={value}")
    print("=" * 50)
    print()


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    answers = sys.argv[1:]
    presenter = ScriptedChoicePresenter(answers) if answers else ConsoleChoicePresenter()
    dispatcher = create_demo_dispatcher()
    shared_store = MapVariableStore()

    def show_message(message: str):
        print(f"[TaskFlow] {message}")

    loader = WorkflowLoader(validation_mode=ValidationMode.FAIL_FAST)

    # Quest A writes questA_done, gold and player_title through effects
    quest_a = loader.load("quest_a")
    WorkflowEngine.from_definition(quest_a).run(presenter, dispatcher, shared_store, show_message)
    print_snapshot("After quest_a", shared_store)

    # Quest B only opens when quest A left questA_done=true behind
    quest_b = loader.load("quest_b")
    WorkflowEngine.from_definition(quest_b).run(presenter, dispatcher, shared_store, show_message)
    print_snapshot("After quest_b", shared_store)


if __name__ == "__main__":
    main()
