#!/usr/bin/env python3
"""
Complete Pipeline Demo: table files → decisions → command → self-test

Shows the full workflow:
1. Load decision and command tables from tests/resources
2. Make a decision against a stored state
3. Perform a command and decide again
4. Self-test the check tables on isolated state
"""

import logging
import os

from decita import Computation, Transition, load_config, read_tables
from decita.serialization import state_to_yaml

RESOURCES = os.path.join(os.path.dirname(os.path.abspath(__file__)), "tests", "resources")


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    config = load_config(os.path.join(RESOURCES, "engine.yaml"))

    print("=" * 80)
    print("COMPLETE PIPELINE DEMO: tables → decisions → commands → self-test")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Load tables
    # =========================================================================
    print("\n1. LOADING TABLES...")
    computation = Computation.from_config(config, {
        "data": {"is-stored": False},
        "market": {"shop": 2},
        "currentPlayer": {"name": "nobody"},
    })
    print(f"   ✓ Decision tables: {computation.decisions.tables.names()}")

    # =========================================================================
    # STEP 2: Decide
    # =========================================================================
    print("\n2. DECIDING...")
    print(f"   ✓ sample-table: {computation.decide_for('sample-table')}")

    # =========================================================================
    # STEP 3: Perform a command
    # =========================================================================
    print("\n3. PERFORMING add-player...")
    computation.perform(Transition("add-player", {"name": "Eugene"}))
    print(f"   ✓ sample-table: {computation.decide_for('sample-table')}")
    print("   ✓ Stored state:")
    for line in state_to_yaml(computation.state).splitlines():
        print(f"      {line}")

    # =========================================================================
    # STEP 4: Self-test
    # =========================================================================
    print("\n4. SELF-TESTING...")
    report = computation.self_test(read_tables(config.tests_dir))
    for line in report.summary().splitlines():
        print(f"   {line}")
    print("\n✅ Done" if report.passed else "\n❌ Self-test failed")


if __name__ == "__main__":
    main()
