#!/usr/bin/env python3
"""Example: Quickstart for loadorder

Minimal working example: read a plugin catalog, resolve it into a
load order, negotiate feature requests and print a report.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install loadorder
"""
from __future__ import annotations

import tempfile
from pathlib import Path

import loadorder
from loadorder.report import ReportSerializer

CATALOG = """
plugins:
  - name: Core
    id: core
    version: 2.1.0
  - name: Core
    id: core
    version: 1.9.0
    source: mirrors/core
  - name: Interface
    id: ui
    version: 1.0.0
    dependencies:
      core: ^2.0.0
    loadAfter: [skins]
  - name: Skins
    id: skins
    version: 0.4.0
    features:
      - define-feature(quiet, no-update)
  - name: Legacy
    id: legacy
    version: 0.5.0
    dependencies:
      core: ~1.9.0
  - name: Sounds
    id: sounds
    version: 1.0.0
    features:
      - quiet
  - name: Music
    id: music
    version: 1.0.0
    dependencies:
      sounds: "*"
"""


def main() -> None:
    print(f"loadorder version: {loadorder.__version__}")

    with tempfile.TemporaryDirectory() as directory:
        path = Path(directory) / "plugins.yaml"
        path.write_text(CATALOG, encoding="utf-8")

        # Step 1: Read the catalog
        catalog = loadorder.load_catalog(path)
        print(f"Catalog: {len(catalog)} descriptors")

    # Step 2: Resolve with one plugin switched off
    disabled = {"sounds"}
    session = loadorder.resolve(catalog, disabled_store=disabled)
    print(f"Resolution: {session.summary()}")
    print(f"Disabled list is now: {sorted(disabled)}")

    # Step 3: Negotiate feature requests
    evaluation = loadorder.evaluate_features(session)
    print(f"Features settled after {evaluation.passes} pass(es)")

    # Step 4: Inspect the outcome
    print("\nLoad order:")
    for position, descriptor in enumerate(session.accepted, start=1):
        print(f"  {position}. {descriptor}")
    print("\nNot loaded:")
    for descriptor in (*session.disabled, *session.ignored):
        reason = session.reason_for(descriptor)
        print(f"  {descriptor}: [{reason.code}] {reason.message}" if reason else f"  {descriptor}")

    # Step 5: Machine-readable report
    print("\nReport:")
    print(ReportSerializer().to_yaml(session))


if __name__ == "__main__":
    main()
